"""Request/response mediator used to wire the order processing workflow.

Requests declare their :class:`RequestKind` as a class attribute; exactly one
handler serves each kind. Routing is a dictionary lookup on that kind, so a
new request type only needs a new kind value and a registered handler.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from threading import Lock
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Protocol

from errors import HandlerInvocationError, NoHandlerRegisteredError
from orders import Order
from pricing import CalculationResult
from reporting import ReportStrategy

logger = logging.getLogger(__name__)


class RequestKind(str, Enum):
    VALIDATE_ORDER = "validate_order"
    GENERATE_REPORT = "generate_report"
    LOG_AUDIT = "log_audit"
    SEND_NOTIFICATION = "send_notification"


@dataclass(frozen=True)
class ProcessingResult:
    success: bool
    order: Optional[Order] = None
    calculation_results: Optional[CalculationResult] = None
    csv_file_path: str = ""
    error_message: Optional[str] = None
    strategy_used: str = ""
    processed_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class ProcessOrderRequest:
    order: Order
    strategy_name: str
    output_path: str = ""
    validate_order: bool = True
    send_notifications: bool = True
    log_audit_trail: bool = True


@dataclass(frozen=True)
class ValidateOrderRequest:
    kind: ClassVar[RequestKind] = RequestKind.VALIDATE_ORDER

    order: Order


@dataclass(frozen=True)
class GenerateReportRequest:
    kind: ClassVar[RequestKind] = RequestKind.GENERATE_REPORT

    order: Order
    strategy: ReportStrategy
    output_path: str


@dataclass(frozen=True)
class LogAuditRequest:
    kind: ClassVar[RequestKind] = RequestKind.LOG_AUDIT

    order: Order
    processing_result: ProcessingResult
    action: str
    additional_data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SendNotificationRequest:
    kind: ClassVar[RequestKind] = RequestKind.SEND_NOTIFICATION

    order: Order
    processing_result: ProcessingResult
    notification_type: str


class Request(Protocol):
    kind: ClassVar[str]


class RequestHandler(Protocol):
    def handle(self, request: Any) -> Any:
        ...


class Mediator:
    """Thread-safe registry routing each request to the handler for its kind."""

    def __init__(self) -> None:
        self._handlers: Dict[str, RequestHandler] = {}
        self._lock = Lock()

    def register(self, kind: str, handler: RequestHandler) -> None:
        if handler is None:
            raise ValueError("handler must not be None")
        with self._lock:
            replaced = self._handlers.get(kind)
            self._handlers[kind] = handler
        if replaced is not None:
            logger.debug("Handler for %s replaced: %r -> %r", _label(kind), replaced, handler)

    def get_handler(self, kind: str) -> Optional[RequestHandler]:
        with self._lock:
            return self._handlers.get(kind)

    def is_registered(self, kind: str) -> bool:
        with self._lock:
            return kind in self._handlers

    def registered_kinds(self) -> List[str]:
        with self._lock:
            return list(self._handlers)

    def verify(self, kinds: Iterable[str]) -> None:
        """Raise ``NoHandlerRegisteredError`` for the first kind with no handler."""
        for kind in kinds:
            if not self.is_registered(kind):
                raise NoHandlerRegisteredError(_label(kind))

    def send(self, request: Request) -> Any:
        kind = request.kind
        handler = self.get_handler(kind)
        if handler is None:
            raise NoHandlerRegisteredError(_label(kind))
        try:
            return handler.handle(request)
        except Exception as exc:
            raise HandlerInvocationError(_label(kind), exc) from exc


def _label(kind: str) -> str:
    return kind.value if isinstance(kind, Enum) else str(kind)
