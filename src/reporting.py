"""CSV audit report formats.

Every format turns an order plus its pre-computed ``CalculationResult`` into
report text and a file name. Formats never recompute prices, so a new one
only has to subclass :class:`ReportStrategy` and be registered by name with
the order processing service.
"""
from __future__ import annotations

import csv
import io
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

from catalog import Product, ProductEnsemble, ProductKit
from orders import SHIPPED_STATUS, Order
from pricing import CalculationResult, ProductCalculation


def format_money(value: float) -> str:
    return f"{value:.2f}"


def format_date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


def format_percent(rate: float) -> str:
    return f"{rate * 100:.2f}%"


def render_csv(header: Sequence[str], rows: Iterable[Sequence[object]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


class ReportStrategy(ABC):
    name: str = ""
    description: str = ""
    file_prefix: str = ""
    extension: str = "csv"

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock

    @abstractmethod
    def generate(self, order: Order, results: CalculationResult) -> str:
        ...

    def file_name(self, order: Order) -> str:
        stamp = self._clock().strftime("%Y%m%d_%H%M%S")
        return f"{self.file_prefix}_{order.order_id}_{stamp}_{uuid.uuid4().hex}.{self.extension}"


def _line_items(
    results: CalculationResult,
    ensemble_label: Callable[[ProductEnsemble], str],
    kit_label: Callable[[ProductKit, str], str],
) -> Iterator[Tuple[str, ProductCalculation]]:
    """Yield ``(item_type, ProductCalculation)`` pairs for every product line."""
    for calc in results.product_calculations:
        yield "Individual", calc
    for ensemble_calc in results.ensemble_calculations:
        label = ensemble_label(ensemble_calc.ensemble)
        for calc in ensemble_calc.product_calculations:
            yield label, calc
    for kit_calc in results.kit_calculations:
        for calc in kit_calc.mandatory_product_calculations:
            yield kit_label(kit_calc.kit, "Mandatory"), calc
        for calc in kit_calc.optional_product_calculations:
            yield kit_label(kit_calc.kit, "Optional"), calc


class StandardRetailAuditStrategy(ReportStrategy):
    name = "Standard"
    description = "Standard Retail Audit CSV Format - Compatible with legacy systems"
    file_prefix = "RetailAudit"

    HEADER = (
        "OrderID", "CustomerID", "OrderDate", "ItemType", "ProductID", "ProductName",
        "Quantity", "UnitPrice", "TotalPrice", "VATAmount", "DiscountApplied",
    )

    def generate(self, order: Order, results: CalculationResult) -> str:
        items = _line_items(
            results,
            ensemble_label=lambda ensemble: "Ensemble",
            kit_label=lambda kit, part: f"Kit-{part}",
        )
        return render_csv(self.HEADER, (self._row(order, item_type, calc) for item_type, calc in items))

    @staticmethod
    def _row(order: Order, item_type: str, calc: ProductCalculation) -> List[object]:
        return [
            order.order_id,
            order.customer_id,
            format_date(order.order_date),
            item_type,
            calc.product.id,
            calc.product.name,
            calc.product.quantity,
            format_money(calc.unit_price),
            format_money(calc.total_price),
            format_money(calc.vat_amount),
            format_money(calc.discount_applied),
        ]


class EnhancedRetailAuditStrategy(ReportStrategy):
    """Standard columns plus supplier, VAT, payment, tracking and compliance data."""

    name = "Enhanced"
    description = "Enhanced Retail Audit CSV Format - Includes compliance and tracking data"
    file_prefix = "EnhancedRetailAudit"

    HEADER = (
        "OrderID", "CustomerID", "CustomerEmail", "OrderDate", "ItemType", "ProductID",
        "ProductName", "Category", "Supplier", "Quantity", "UnitPrice", "TotalPrice",
        "VATRate", "VATAmount", "DiscountApplied", "PaymentMethodType", "TrackingNumber",
        "ComplianceStatus",
    )

    def generate(self, order: Order, results: CalculationResult) -> str:
        items = _line_items(
            results,
            ensemble_label=lambda ensemble: f"Ensemble-{ensemble.theme}",
            kit_label=lambda kit, part: f"Kit-{kit.kit_type}-{part}",
        )
        return render_csv(self.HEADER, (self._row(order, item_type, calc) for item_type, calc in items))

    def _row(self, order: Order, item_type: str, calc: ProductCalculation) -> List[object]:
        product = calc.product
        payment_type = order.payment_method.type if order.payment_method else ""
        return [
            order.order_id,
            order.customer_id,
            order.customer_email,
            format_date(order.order_date),
            item_type,
            product.id,
            product.name,
            product.category,
            product.supplier,
            product.quantity,
            format_money(calc.unit_price),
            format_money(calc.total_price),
            format_percent(product.vat_rate),
            format_money(calc.vat_amount),
            format_money(calc.discount_applied),
            payment_type,
            order.tracking_number or "N/A",
            self.compliance_status(order, product),
        ]

    @staticmethod
    def compliance_status(order: Order, product: Product) -> str:
        issues = []
        if not product.supplier:
            issues.append("NO_SUPPLIER")
        if product.vat_rate <= 0:
            issues.append("INVALID_VAT")
        if not order.tracking_number and order.status == SHIPPED_STATUS:
            issues.append("NO_TRACKING")
        if order.payment_method is None or not order.payment_method.is_verified:
            issues.append("UNVERIFIED_PAYMENT")
        if any(not code.is_active for code in order.applied_discount_codes):
            issues.append("INACTIVE_DISCOUNT")
        return ";".join(issues) if issues else "COMPLIANT"


class FinancialSummaryStrategy(ReportStrategy):
    name = "Financial"
    description = "Financial Summary CSV Format - Aggregated data for financial reporting"
    file_prefix = "FinancialSummary"

    HEADER = (
        "OrderID", "CustomerID", "OrderDate", "OrderType", "ItemCount", "SubtotalExVAT",
        "VATAmount", "DiscountAmount", "ShippingCost", "TotalAmount", "PaymentMethod",
        "PaymentProvider", "ProcessingFee", "OrderStatus",
    )

    def generate(self, order: Order, results: CalculationResult) -> str:
        payment = order.payment_method
        row = [
            order.order_id,
            order.customer_id,
            format_date(order.order_date),
            self.order_type(order),
            self.item_count(order),
            format_money(results.subtotal),
            format_money(results.total_vat),
            format_money(results.total_discount),
            format_money(order.shipping_cost),
            format_money(results.grand_total),
            payment.type if payment else "",
            payment.provider if payment else "",
            format_money(payment.processing_fee if payment else 0.0),
            order.status,
        ]
        return render_csv(self.HEADER, [row])

    @staticmethod
    def order_type(order: Order) -> str:
        has_individual = bool(order.individual_products)
        has_ensembles = bool(order.product_ensembles)
        has_kits = bool(order.product_kits)
        if has_individual and has_ensembles and has_kits:
            return "Mixed"
        if has_kits:
            return "Kit-Only"
        if has_ensembles:
            return "Ensemble-Only"
        if has_individual:
            return "Individual-Only"
        return "Empty"

    @staticmethod
    def item_count(order: Order) -> int:
        return (
            sum(p.effective_quantity for p in order.individual_products)
            + sum(e.effective_quantity * len(e.products) for e in order.product_ensembles)
            + sum(k.effective_quantity * k.product_count for k in order.product_kits)
        )


def default_strategies(clock: Callable[[], datetime] = datetime.now) -> List[ReportStrategy]:
    return [
        StandardRetailAuditStrategy(clock),
        EnhancedRetailAuditStrategy(clock),
        FinancialSummaryStrategy(clock),
    ]
