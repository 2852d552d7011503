"""Builds and "sends" order notifications. Delivery is a log line per recipient."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

logger = logging.getLogger(__name__)

DEFAULT_SENDER = "noreply@example.com"
DEFAULT_ADMIN_RECIPIENTS = ("admin@company.com", "audit@company.com")
DEFAULT_SUPPORT_RECIPIENTS = ("admin@company.com", "support@company.com")

ORDER_PROCESSED = "ORDER_PROCESSED"
ORDER_FAILED = "ORDER_FAILED"
ORDER_SHIPPED = "ORDER_SHIPPED"


@dataclass
class NotificationResult:
    success: bool
    message: str
    recipients: List[str] = field(default_factory=list)


class NotificationService:
    def __init__(
        self,
        sender: str = DEFAULT_SENDER,
        admin_recipients: Sequence[str] = DEFAULT_ADMIN_RECIPIENTS,
        support_recipients: Sequence[str] = DEFAULT_SUPPORT_RECIPIENTS,
    ) -> None:
        self._sender = sender
        self._admin_recipients = list(admin_recipients)
        self._support_recipients = list(support_recipients)

    def notify(self, notification_type: str, order_id: str, customer_email: str = "") -> NotificationResult:
        kind = notification_type.upper()
        if kind == ORDER_PROCESSED:
            recipients = ([customer_email] if customer_email else []) + self._admin_recipients
            return self._send(recipients, f"Order {order_id} processing notification")
        if kind == ORDER_FAILED:
            return self._send(list(self._support_recipients), f"Order {order_id} failure notification")
        if kind == ORDER_SHIPPED:
            recipients = [customer_email] if customer_email else []
            return self._send(recipients, f"Order {order_id} shipping notification")
        return NotificationResult(success=False, message=f"Unknown notification type: {notification_type}")

    def _send(self, recipients: List[str], subject: str) -> NotificationResult:
        for address in recipients:
            logger.info("[%s] Sending '%s' to %s", self._sender, subject, address)
        return NotificationResult(
            success=True,
            message=f"{subject} sent to {len(recipients)} recipients",
            recipients=recipients,
        )
