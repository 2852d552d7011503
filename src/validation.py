"""Order validation: hard errors block processing, warnings are advisory."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List

from catalog import Product
from orders import KNOWN_ORDER_STATUSES, Order


@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


class OrderValidator:
    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock

    def validate(self, order: Order) -> ValidationResult:
        result = ValidationResult()
        self._validate_header(order, result)

        if not order.has_line_items:
            result.errors.append("Order must contain at least one product, ensemble, or kit")

        for product in order.individual_products:
            self._validate_product(product, "Individual Product", result)

        for ensemble in order.product_ensembles:
            if not ensemble.id:
                result.errors.append("Ensemble ID is required")
            if ensemble.quantity <= 0:
                result.warnings.append(f"Ensemble {ensemble.name} has zero or negative quantity")
            if not 0 <= ensemble.ensemble_discount <= 1:
                result.errors.append(f"Ensemble {ensemble.name} discount must be between 0 and 1")
            for product in ensemble.products:
                self._validate_product(product, f"Ensemble Product ({ensemble.name})", result)

        for kit in order.product_kits:
            if not kit.id:
                result.errors.append("Kit ID is required")
            if kit.quantity <= 0:
                result.warnings.append(f"Kit {kit.name} has zero or negative quantity")
            if kit.kit_price < 0:
                result.errors.append(f"Kit {kit.name} price cannot be negative")
            if not kit.mandatory_products:
                result.warnings.append(f"Kit {kit.name} has no mandatory products")
            for product in kit.mandatory_products:
                self._validate_product(product, f"Kit Mandatory Product ({kit.name})", result)
            for product in kit.optional_products:
                self._validate_product(product, f"Kit Optional Product ({kit.name})", result)

        self._validate_payment(order, result)
        self._validate_discount_codes(order, result)

        if order.actual_price_paid < 0:
            result.errors.append("Actual price paid cannot be negative")
        if order.shipping_cost < 0:
            result.errors.append("Shipping cost cannot be negative")

        if order.status not in KNOWN_ORDER_STATUSES:
            result.warnings.append(f"Order status '{order.status}' is not a standard status")

        return result

    def _validate_header(self, order: Order, result: ValidationResult) -> None:
        if not order.order_id:
            result.errors.append("Order ID is required")
        if not order.customer_id:
            result.errors.append("Customer ID is required")
        if order.order_date is None:
            result.errors.append("Order date is required")
        elif order.order_date > self._clock():
            result.errors.append("Order date cannot be in the future")

    @staticmethod
    def _validate_product(product: Product, context: str, result: ValidationResult) -> None:
        if not product.id:
            result.errors.append(f"{context}: Product ID is required")
        if not product.name:
            result.errors.append(f"{context}: Product name is required")
        if product.rrp < 0:
            result.errors.append(f"{context} {product.name}: RRP cannot be negative")
        if not 0 <= product.vat_rate <= 1:
            result.errors.append(f"{context} {product.name}: VAT rate must be between 0 and 1")
        if product.quantity <= 0:
            result.warnings.append(f"{context} {product.name}: Quantity is zero or negative")
        if not product.category:
            result.warnings.append(f"{context} {product.name}: Category is not specified")
        if not product.supplier:
            result.warnings.append(f"{context} {product.name}: Supplier is not specified")

    @staticmethod
    def _validate_payment(order: Order, result: ValidationResult) -> None:
        payment = order.payment_method
        if payment is None:
            result.errors.append("Payment method is required")
            return
        if not payment.type:
            result.errors.append("Payment method type is required")
        if not payment.transaction_id:
            result.warnings.append("Payment transaction ID is missing")
        if payment.processing_fee < 0:
            result.errors.append("Payment processing fee cannot be negative")

    @staticmethod
    def _validate_discount_codes(order: Order, result: ValidationResult) -> None:
        for discount in order.applied_discount_codes:
            if not discount.code:
                result.errors.append("Discount code cannot be empty")
            if not 0 <= discount.discount_percentage <= 1:
                result.errors.append(f"Discount code {discount.code} percentage must be between 0 and 1")
            if discount.valid_from > discount.valid_to:
                result.errors.append(f"Discount code {discount.code} has invalid date range")
            if discount.current_usages > discount.max_usages:
                result.errors.append(f"Discount code {discount.code} has exceeded maximum usages")
