"""Order processing workflow coordinated through the mediator.

The workflow is a small LangGraph state machine::

    validate -> report -> audit -> notify

The report strategy is resolved before the graph runs, so a result that fails
after validation still names the strategy it was produced for. Validation
failures end the graph early. Audit and notification are optional side steps
whose failures are logged but never change the processing result.
"""
from __future__ import annotations

import logging
from datetime import datetime
from threading import Lock
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, TypedDict

from langgraph.graph import END, StateGraph

from audit import AuditEntry, AuditLogger
from email_notifications import ORDER_PROCESSED, NotificationResult, NotificationService
from errors import ConfigurationError, HandlerInvocationError, NoHandlerRegisteredError
from handlers import register_default_handlers
from mediator import (
    GenerateReportRequest,
    LogAuditRequest,
    Mediator,
    ProcessingResult,
    ProcessOrderRequest,
    RequestKind,
    SendNotificationRequest,
    ValidateOrderRequest,
)
from pricing import PricingService
from promotions import PromotionService
from reporting import ReportStrategy, default_strategies
from settings import ProcessingSettings
from validation import OrderValidator, ValidationResult

logger = logging.getLogger(__name__)

REQUIRED_REQUEST_KINDS = (
    RequestKind.VALIDATE_ORDER,
    RequestKind.GENERATE_REPORT,
    RequestKind.LOG_AUDIT,
    RequestKind.SEND_NOTIFICATION,
)

ORDER_PROCESSED_ACTION = "ORDER_PROCESSED"
ORDER_PROCESSING_ERROR_ACTION = "ORDER_PROCESSING_ERROR"


class WorkflowState(TypedDict, total=False):
    request: ProcessOrderRequest
    validation: Optional[ValidationResult]
    strategy: ReportStrategy
    result: ProcessingResult
    audit_entry: Optional[AuditEntry]
    notification: Optional[NotificationResult]


class OrderProcessingService:
    """Validates, prices, reports, audits and notifies for a single order per call.

    Report strategies are registered by name. An unknown strategy name falls
    back to ``settings.default_strategy`` when that is registered, otherwise
    to the first strategy that was registered.
    """

    def __init__(
        self,
        mediator: Mediator,
        strategies: Optional[Iterable[ReportStrategy]] = None,
        settings: Optional[ProcessingSettings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        mediator.verify(REQUIRED_REQUEST_KINDS)
        self._mediator = mediator
        self._settings = settings or ProcessingSettings()
        self._clock = clock
        self._strategies: Dict[str, ReportStrategy] = {}
        self._strategies_lock = Lock()
        for strategy in strategies or ():
            self.register_strategy(strategy.name, strategy)
        self._workflow = self._build_workflow()

    def register_strategy(self, name: str, strategy: ReportStrategy) -> None:
        if not name:
            raise ValueError("Strategy name cannot be empty")
        if strategy is None:
            raise ValueError("strategy must not be None")
        with self._strategies_lock:
            self._strategies[name] = strategy

    def get_strategy(self, name: str) -> Optional[ReportStrategy]:
        with self._strategies_lock:
            return self._strategies.get(name)

    def available_strategies(self) -> List[ReportStrategy]:
        with self._strategies_lock:
            return list(self._strategies.values())

    def resolve_strategy(self, name: str) -> Tuple[ReportStrategy, bool]:
        """Return ``(strategy, used_fallback)`` for ``name``."""
        with self._strategies_lock:
            strategy = self._strategies.get(name)
            if strategy is not None:
                return strategy, False
            default_name = self._settings.default_strategy
            fallback = self._strategies.get(default_name) if default_name else None
            if fallback is None:
                fallback = next(iter(self._strategies.values()), None)
        if fallback is None:
            raise ConfigurationError("No report strategies are registered")
        return fallback, True

    def process_order(self, request: ProcessOrderRequest) -> ProcessingResult:
        if request is None or request.order is None:
            raise ValueError("request and request.order are required")

        order_id = request.order.order_id
        logger.info("Processing order %s with strategy %r", order_id, request.strategy_name)
        strategy: Optional[ReportStrategy] = None
        try:
            strategy = self._select_strategy(request.strategy_name)
            final_state = self._workflow.invoke({"request": request, "strategy": strategy})
        except NoHandlerRegisteredError:
            raise
        except Exception as exc:
            logger.error("Error processing order %s: %s", order_id, exc, exc_info=True)
            failed = ProcessingResult(
                success=False,
                order=request.order,
                error_message=str(exc),
                strategy_used=strategy.description if strategy is not None else "",
                processed_at=self._clock(),
            )
            if request.log_audit_trail:
                self._audit_failure(request, failed, exc)
            return failed
        return final_state["result"]

    def _build_workflow(self):
        graph = StateGraph(WorkflowState)
        graph.add_node("validate", self._validate_node)
        graph.add_node("report", self._report_node)
        graph.add_node("audit", self._audit_node)
        graph.add_node("notify", self._notify_node)
        graph.set_entry_point("validate")
        graph.add_conditional_edges("validate", self._route_after_validation)
        graph.add_conditional_edges("report", self._route_after_report)
        graph.add_conditional_edges("audit", self._route_after_audit)
        graph.add_edge("notify", END)
        return graph.compile()

    def _validate_node(self, state: WorkflowState) -> Dict[str, Any]:
        request = state["request"]
        if not request.validate_order:
            return {"validation": None}

        validation: ValidationResult = self._mediator.send(ValidateOrderRequest(order=request.order))
        if validation.warnings:
            logger.warning(
                "Validation warnings for order %s: %s",
                request.order.order_id,
                ", ".join(validation.warnings),
            )
        if validation.is_valid:
            return {"validation": validation}

        message = f"Order validation failed: {', '.join(validation.errors)}"
        logger.info("Order %s rejected: %s", request.order.order_id, message)
        return {
            "validation": validation,
            "result": ProcessingResult(
                success=False,
                order=request.order,
                error_message=message,
                processed_at=self._clock(),
            ),
        }

    def _route_after_validation(self, state: WorkflowState) -> str:
        if state.get("result") is not None:
            return END
        return "report"

    def _select_strategy(self, name: str) -> ReportStrategy:
        strategy, used_fallback = self.resolve_strategy(name)
        if used_fallback:
            logger.warning("Strategy %r not found, using default: %s", name, strategy.description)
        return strategy

    def _report_node(self, state: WorkflowState) -> Dict[str, Any]:
        request = state["request"]
        strategy = state["strategy"]
        result: ProcessingResult = self._mediator.send(
            GenerateReportRequest(
                order=request.order,
                strategy=strategy,
                output_path=self._output_path(request),
            )
        )
        return {"result": result}

    def _route_after_report(self, state: WorkflowState) -> str:
        if state["request"].log_audit_trail:
            return "audit"
        return self._route_after_audit(state)

    def _audit_node(self, state: WorkflowState) -> Dict[str, Any]:
        request = state["request"]
        result = state["result"]
        try:
            entry = self._mediator.send(
                LogAuditRequest(
                    order=request.order,
                    processing_result=result,
                    action=ORDER_PROCESSED_ACTION,
                    additional_data={
                        "Strategy": result.strategy_used,
                        "OutputPath": self._output_path(request),
                        "ProcessingTime": self._clock(),
                    },
                )
            )
        except HandlerInvocationError:
            logger.warning(
                "Audit logging failed for order %s", request.order.order_id, exc_info=True
            )
            entry = None
        return {"audit_entry": entry}

    def _route_after_audit(self, state: WorkflowState) -> str:
        if state["request"].send_notifications and state["result"].success:
            return "notify"
        return END

    def _notify_node(self, state: WorkflowState) -> Dict[str, Any]:
        request = state["request"]
        try:
            notification: NotificationResult = self._mediator.send(
                SendNotificationRequest(
                    order=request.order,
                    processing_result=state["result"],
                    notification_type=ORDER_PROCESSED,
                )
            )
        except HandlerInvocationError:
            logger.warning(
                "Notification failed for order %s", request.order.order_id, exc_info=True
            )
            return {"notification": None}
        if not notification.success:
            logger.warning(
                "Notification for order %s not sent: %s",
                request.order.order_id,
                notification.message,
            )
        return {"notification": notification}

    def _audit_failure(self, request: ProcessOrderRequest, failed: ProcessingResult, exc: Exception) -> None:
        try:
            self._mediator.send(
                LogAuditRequest(
                    order=request.order,
                    processing_result=failed,
                    action=ORDER_PROCESSING_ERROR_ACTION,
                    additional_data={"Error": str(exc)},
                )
            )
        except Exception:
            logger.debug(
                "Could not audit failure of order %s", request.order.order_id, exc_info=True
            )

    def _output_path(self, request: ProcessOrderRequest) -> str:
        return request.output_path or self._settings.output_dir


def build_order_processing_service(
    settings: Optional[ProcessingSettings] = None,
    audit: Optional[AuditLogger] = None,
    notifications: Optional[NotificationService] = None,
    clock: Callable[[], datetime] = datetime.now,
) -> OrderProcessingService:
    settings = settings or ProcessingSettings()
    mediator = register_default_handlers(
        Mediator(),
        audit=audit or AuditLogger(clock),
        notifications=notifications
        or NotificationService(
            sender=settings.notification_sender,
            admin_recipients=settings.admin_recipients,
        ),
        validator=OrderValidator(clock),
        pricing=PricingService(PromotionService(clock)),
        clock=clock,
    )
    return OrderProcessingService(
        mediator,
        strategies=default_strategies(clock),
        settings=settings,
        clock=clock,
    )
