"""Tests for the OrderProcessingService workflow."""

import copy
import logging
from datetime import timedelta
from pathlib import Path

import pytest

from audit import AuditLogger
from email_notifications import NotificationService
from errors import NoHandlerRegisteredError
from factories import NOW, fixed_clock, make_discount, make_order, make_product
from handlers import register_default_handlers
from mediator import Mediator, ProcessOrderRequest, RequestKind
from order_service import OrderProcessingService, build_order_processing_service
from pricing import PricingService
from promotions import PromotionService
from reporting import (
    FinancialSummaryStrategy,
    StandardRetailAuditStrategy,
    default_strategies,
)
from settings import ProcessingSettings
from validation import OrderValidator


class FailingHandler:
    def __init__(self, message="boom"):
        self.message = message

    def handle(self, request):
        raise RuntimeError(self.message)


class RecordingHandler:
    def __init__(self, inner, kind, calls):
        self.inner = inner
        self.kind = kind
        self.calls = calls

    def handle(self, request):
        self.calls.append((self.kind, request))
        return self.inner.handle(request) if self.inner else None


@pytest.fixture
def audit():
    return AuditLogger(fixed_clock)


@pytest.fixture
def mediator(audit):
    return register_default_handlers(
        Mediator(),
        audit=audit,
        notifications=NotificationService(),
        validator=OrderValidator(fixed_clock),
        pricing=PricingService(PromotionService(fixed_clock)),
        clock=fixed_clock,
    )


def make_service(mediator, settings=None, strategies=None):
    return OrderProcessingService(
        mediator,
        strategies=default_strategies(fixed_clock) if strategies is None else strategies,
        settings=settings,
        clock=fixed_clock,
    )


def make_request(order, output_path, strategy_name="Standard", **flags):
    return ProcessOrderRequest(order=order, strategy_name=strategy_name, output_path=str(output_path), **flags)


def record_all(mediator, calls):
    for kind in RequestKind:
        inner = mediator.get_handler(kind)
        mediator.register(kind, RecordingHandler(inner, kind, calls))


class TestSuccessfulProcessing:
    def test_writes_report_and_returns_results(self, mediator, simple_order, tmp_path):
        result = make_service(mediator).process_order(make_request(simple_order, tmp_path))

        assert result.success
        assert result.error_message is None
        assert result.strategy_used == StandardRetailAuditStrategy.description
        assert result.calculation_results.grand_total == pytest.approx(29.0)
        path = Path(result.csv_file_path)
        assert path.parent == tmp_path
        assert path.name.startswith("RetailAudit_ORD-1_20240615_123045_")
        assert path.read_text(encoding="utf-8").startswith("OrderID,CustomerID,OrderDate,ItemType")

    def test_steps_run_in_order(self, mediator, simple_order, tmp_path):
        calls = []
        record_all(mediator, calls)

        make_service(mediator).process_order(make_request(simple_order, tmp_path))

        assert [kind for kind, _ in calls] == [
            RequestKind.VALIDATE_ORDER,
            RequestKind.GENERATE_REPORT,
            RequestKind.LOG_AUDIT,
            RequestKind.SEND_NOTIFICATION,
        ]
        notification_request = calls[-1][1]
        assert notification_request.notification_type == "ORDER_PROCESSED"

    def test_optional_steps_can_be_skipped(self, mediator, simple_order, tmp_path):
        calls = []
        record_all(mediator, calls)

        result = make_service(mediator).process_order(
            make_request(
                simple_order,
                tmp_path,
                validate_order=False,
                send_notifications=False,
                log_audit_trail=False,
            )
        )

        assert result.success
        assert [kind for kind, _ in calls] == [RequestKind.GENERATE_REPORT]

    def test_audit_entry_records_context(self, mediator, audit, simple_order, tmp_path):
        make_service(mediator).process_order(make_request(simple_order, tmp_path, strategy_name="Financial"))

        [entry] = audit.entries_for("ORD-1")
        assert entry.action == "ORDER_PROCESSED"
        assert entry.success is True
        assert entry.details["Strategy"] == FinancialSummaryStrategy.description
        assert entry.details["OutputPath"] == str(tmp_path)

    def test_order_is_not_modified(self, mediator, mixed_order, tmp_path):
        before = copy.deepcopy(mixed_order)

        make_service(mediator).process_order(make_request(mixed_order, tmp_path, strategy_name="Enhanced"))

        assert mixed_order == before

    def test_settings_output_dir_used_when_request_has_none(self, mediator, simple_order, tmp_path):
        settings = ProcessingSettings(output_dir=str(tmp_path / "reports"))

        result = make_service(mediator, settings=settings).process_order(
            ProcessOrderRequest(order=simple_order, strategy_name="Standard")
        )

        assert Path(result.csv_file_path).parent == tmp_path / "reports"

    @pytest.mark.parametrize(
        "code",
        [
            make_discount(is_active=False),
            make_discount(valid_to=NOW - timedelta(days=1)),
            make_discount(max_usages=2, current_usages=2),
            make_discount(min_order_amount=1_000_000.0),
        ],
        ids=["inactive", "expired", "exhausted", "below-minimum"],
    )
    def test_ineligible_discount_code_still_processes(self, mediator, tmp_path, code):
        order = make_order(
            individual_products=(make_product(rrp=10.0, quantity=2),),
            applied_discount_codes=(code,),
        )

        result = make_service(mediator).process_order(make_request(order, tmp_path, validate_order=True))

        assert result.success
        assert result.calculation_results.total_discount == 0
        assert result.calculation_results.grand_total == pytest.approx(24.0)


class TestStrategyFallback:
    def test_unknown_strategy_falls_back_to_first_registered(self, mediator, simple_order, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger="order_service"):
            result = make_service(mediator).process_order(
                make_request(simple_order, tmp_path, strategy_name="DoesNotExist")
            )

        assert result.success
        assert result.strategy_used == StandardRetailAuditStrategy.description
        assert "DoesNotExist" in caplog.text

    def test_configured_default_strategy_wins(self, mediator, simple_order, tmp_path):
        service = make_service(mediator, settings=ProcessingSettings(default_strategy="Financial"))

        result = service.process_order(make_request(simple_order, tmp_path, strategy_name="Nope"))

        assert result.strategy_used == FinancialSummaryStrategy.description

    def test_strategies_registered_at_runtime(self, mediator, simple_order, tmp_path):
        service = make_service(mediator)

        class Custom(StandardRetailAuditStrategy):
            name = "Custom"
            description = "Custom format"
            file_prefix = "Custom"

        service.register_strategy("Custom", Custom(fixed_clock))
        result = service.process_order(make_request(simple_order, tmp_path, strategy_name="Custom"))

        assert result.strategy_used == "Custom format"
        assert Path(result.csv_file_path).name.startswith("Custom_")
        assert [s.name for s in service.available_strategies()] == ["Standard", "Enhanced", "Financial", "Custom"]

    def test_no_strategies_is_a_failed_result(self, mediator, simple_order, tmp_path):
        result = make_service(mediator, strategies=[]).process_order(make_request(simple_order, tmp_path))

        assert not result.success
        assert result.error_message == "No report strategies are registered"


class TestFailures:
    def test_validation_errors_stop_the_workflow(self, mediator, audit, tmp_path):
        calls = []
        record_all(mediator, calls)
        order = make_order(customer_id="")

        result = make_service(mediator).process_order(make_request(order, tmp_path))

        assert not result.success
        assert result.error_message == (
            "Order validation failed: Customer ID is required, "
            "Order must contain at least one product, ensemble, or kit"
        )
        assert result.calculation_results is None
        assert [kind for kind, _ in calls] == [RequestKind.VALIDATE_ORDER]
        assert list(tmp_path.iterdir()) == []

    def test_audit_failure_does_not_fail_the_order(self, mediator, simple_order, tmp_path, caplog):
        mediator.register(RequestKind.LOG_AUDIT, FailingHandler("audit store offline"))

        with caplog.at_level(logging.WARNING, logger="order_service"):
            result = make_service(mediator).process_order(make_request(simple_order, tmp_path))

        assert result.success
        assert "Audit logging failed for order ORD-1" in caplog.text
        assert "audit store offline" in caplog.text

    def test_notification_failure_is_logged(self, mediator, simple_order, tmp_path, caplog):
        mediator.register(RequestKind.SEND_NOTIFICATION, FailingHandler("smtp down"))

        with caplog.at_level(logging.WARNING, logger="order_service"):
            result = make_service(mediator).process_order(make_request(simple_order, tmp_path))

        assert result.success
        assert "Notification failed for order ORD-1" in caplog.text

    def test_write_failure_returns_failed_result_and_is_audited(self, mediator, audit, simple_order, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x", encoding="utf-8")
        calls = []
        record_all(mediator, calls)

        result = make_service(mediator).process_order(make_request(simple_order, blocker))

        assert not result.success
        assert "Failed to write report" in result.error_message
        assert RequestKind.SEND_NOTIFICATION not in [kind for kind, _ in calls]
        [entry] = audit.entries_for("ORD-1")
        assert entry.action == "ORDER_PROCESSING_ERROR"
        assert entry.success is False

    def test_failed_result_names_the_fallback_strategy(self, mediator, simple_order, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x", encoding="utf-8")
        service = make_service(mediator, settings=ProcessingSettings(default_strategy="Financial"))

        result = service.process_order(make_request(simple_order, blocker, strategy_name="Unknown"))

        assert not result.success
        assert result.strategy_used == FinancialSummaryStrategy.description
        assert "FinancialSummary_ORD-1_" in result.error_message

    def test_secondary_audit_failure_is_swallowed(self, mediator, simple_order, tmp_path):
        mediator.register(RequestKind.GENERATE_REPORT, FailingHandler("pricing failed"))
        mediator.register(RequestKind.LOG_AUDIT, FailingHandler("audit failed"))

        result = make_service(mediator).process_order(make_request(simple_order, tmp_path))

        assert not result.success
        assert result.error_message == "pricing failed"

    def test_missing_handlers_fail_at_construction(self):
        with pytest.raises(NoHandlerRegisteredError):
            OrderProcessingService(Mediator())


def test_build_order_processing_service(simple_order, tmp_path):
    audit = AuditLogger(fixed_clock)
    service = build_order_processing_service(audit=audit, clock=fixed_clock)

    result = service.process_order(make_request(simple_order, tmp_path, strategy_name="Enhanced"))

    assert result.success
    assert [s.name for s in service.available_strategies()] == ["Standard", "Enhanced", "Financial"]
    assert [e.action for e in audit.entries()] == ["ORDER_PROCESSED"]
