"""Append-only in-memory audit trail for order processing events."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditEntry:
    entry_id: str
    action: str
    order_id: str
    customer_id: str
    success: bool
    at: datetime
    error_message: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class AuditLogger:
    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock
        self._entries: List[AuditEntry] = []
        self._lock = Lock()

    def log(
        self,
        action: str,
        order_id: str,
        customer_id: str,
        success: bool,
        error_message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditEntry:
        entry = AuditEntry(
            entry_id=str(uuid.uuid4()),
            action=action,
            order_id=order_id,
            customer_id=customer_id,
            success=success,
            at=self._clock(),
            error_message=error_message or None,
            details=dict(details or {}),
        )
        with self._lock:
            self._entries.append(entry)
        logger.info(
            "AUDIT [%s] %s order=%s customer=%s success=%s%s",
            entry.entry_id,
            action,
            order_id,
            customer_id,
            success,
            f" error={entry.error_message}" if entry.error_message else "",
        )
        return entry

    def entries(self) -> List[AuditEntry]:
        with self._lock:
            return list(self._entries)

    def entries_for(self, order_id: str) -> List[AuditEntry]:
        return [entry for entry in self.entries() if entry.order_id == order_id]
