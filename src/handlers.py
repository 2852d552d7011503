"""Request handlers binding the pipeline collaborators to mediator request kinds."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

from audit import AuditEntry, AuditLogger
from email_notifications import NotificationResult, NotificationService
from mediator import (
    GenerateReportRequest,
    LogAuditRequest,
    Mediator,
    ProcessingResult,
    RequestKind,
    SendNotificationRequest,
    ValidateOrderRequest,
)
from pricing import PricingService
from storage import ReportWriter
from validation import OrderValidator, ValidationResult

logger = logging.getLogger(__name__)


class OrderValidationHandler:
    def __init__(self, validator: Optional[OrderValidator] = None) -> None:
        self._validator = validator or OrderValidator()

    def handle(self, request: ValidateOrderRequest) -> ValidationResult:
        return self._validator.validate(request.order)


class ReportGenerationHandler:
    """Prices the order, renders it with the requested strategy and writes the file."""

    def __init__(
        self,
        pricing: Optional[PricingService] = None,
        writer_factory: Callable[[Union[str, Path]], ReportWriter] = ReportWriter,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._pricing = pricing or PricingService()
        self._writer_factory = writer_factory
        self._clock = clock

    def handle(self, request: GenerateReportRequest) -> ProcessingResult:
        order = request.order
        strategy = request.strategy

        results = self._pricing.compute_order(order)
        content = strategy.generate(order, results)
        path = self._writer_factory(request.output_path).write_file(strategy.file_name(order), content)

        logger.info(
            "Order %s priced with %s: grand total %.2f, VAT %.2f",
            order.order_id,
            strategy.name or type(strategy).__name__,
            results.grand_total,
            results.total_vat,
        )
        return ProcessingResult(
            success=True,
            order=order,
            calculation_results=results,
            csv_file_path=str(path),
            strategy_used=strategy.description,
            processed_at=self._clock(),
        )


class AuditLogHandler:
    def __init__(self, audit: AuditLogger) -> None:
        self._audit = audit

    def handle(self, request: LogAuditRequest) -> AuditEntry:
        result = request.processing_result
        return self._audit.log(
            action=request.action,
            order_id=request.order.order_id,
            customer_id=request.order.customer_id,
            success=result.success,
            error_message=result.error_message,
            details=request.additional_data,
        )


class NotificationHandler:
    def __init__(self, notifications: NotificationService) -> None:
        self._notifications = notifications

    def handle(self, request: SendNotificationRequest) -> NotificationResult:
        return self._notifications.notify(
            request.notification_type,
            order_id=request.order.order_id,
            customer_email=request.order.customer_email,
        )


def register_default_handlers(
    mediator: Mediator,
    audit: AuditLogger,
    notifications: NotificationService,
    validator: Optional[OrderValidator] = None,
    pricing: Optional[PricingService] = None,
    clock: Callable[[], datetime] = datetime.now,
) -> Mediator:
    mediator.register(RequestKind.VALIDATE_ORDER, OrderValidationHandler(validator))
    mediator.register(RequestKind.GENERATE_REPORT, ReportGenerationHandler(pricing, clock=clock))
    mediator.register(RequestKind.LOG_AUDIT, AuditLogHandler(audit))
    mediator.register(RequestKind.SEND_NOTIFICATION, NotificationHandler(notifications))
    return mediator
