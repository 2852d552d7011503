"""Order pricing: per-line, ensemble and kit totals, discounts and VAT."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from catalog import Product, ProductEnsemble, ProductKit
from orders import Order
from promotions import DiscountResult, PromotionService
from tax import TaxService

# Kits without an explicit price sell at 90% of their products' combined total.
DEFAULT_KIT_PRICE_FACTOR = 0.9


@dataclass(frozen=True)
class ProductCalculation:
    product: Product
    unit_price: float
    total_price: float
    vat_amount: float
    discount_applied: float = 0.0


@dataclass(frozen=True)
class EnsembleCalculation:
    ensemble: ProductEnsemble
    base_total: float
    discount_amount: float
    final_total: float
    vat_amount: float
    product_calculations: Tuple[ProductCalculation, ...] = ()


@dataclass(frozen=True)
class KitCalculation:
    kit: ProductKit
    kit_unit_price: float
    total_price: float
    vat_amount: float
    mandatory_product_calculations: Tuple[ProductCalculation, ...] = ()
    optional_product_calculations: Tuple[ProductCalculation, ...] = ()


@dataclass(frozen=True)
class CalculationResult:
    product_calculations: Tuple[ProductCalculation, ...] = ()
    ensemble_calculations: Tuple[EnsembleCalculation, ...] = ()
    kit_calculations: Tuple[KitCalculation, ...] = ()
    discount_results: Tuple[DiscountResult, ...] = ()
    individual_products_total: float = 0.0
    individual_products_vat: float = 0.0
    ensemble_total: float = 0.0
    ensemble_vat: float = 0.0
    kit_total: float = 0.0
    kit_vat: float = 0.0
    pre_discount_subtotal: float = 0.0
    total_discount: float = 0.0
    subtotal: float = 0.0
    total_vat: float = 0.0
    grand_total: float = 0.0


class PricingService:
    """Calculates order totals from line items, discount codes and VAT rules.

    The order is only read; every call builds a fresh ``CalculationResult``.
    RRP values are not sanity-checked here, that is the validator's job.
    """

    def __init__(
        self,
        promotions: Optional[PromotionService] = None,
        tax: Optional[TaxService] = None,
    ) -> None:
        self._promotions = promotions or PromotionService()
        self._tax = tax or TaxService()

    def calculate_product(self, product: Product) -> ProductCalculation:
        unit_price = product.rrp
        total_price = unit_price * product.effective_quantity
        tax = self._tax.calculate(total_price, product.vat_rate)
        return ProductCalculation(
            product=product,
            unit_price=unit_price,
            total_price=total_price,
            vat_amount=tax.amount,
        )

    def calculate_ensemble(self, ensemble: ProductEnsemble) -> EnsembleCalculation:
        product_calculations = tuple(self.calculate_product(p) for p in ensemble.products)
        base_total = sum(calc.total_price for calc in product_calculations)
        discount_amount = base_total * ensemble.ensemble_discount
        final_total = (base_total - discount_amount) * ensemble.effective_quantity
        return EnsembleCalculation(
            ensemble=ensemble,
            base_total=base_total,
            discount_amount=discount_amount,
            final_total=final_total,
            vat_amount=self._tax.calculate_group(final_total).amount,
            product_calculations=product_calculations,
        )

    def calculate_kit(self, kit: ProductKit) -> KitCalculation:
        mandatory = tuple(self.calculate_product(p) for p in kit.mandatory_products)
        optional = tuple(self.calculate_product(p) for p in kit.optional_products)
        if kit.kit_price > 0:
            kit_unit_price = kit.kit_price
        else:
            products_total = sum(c.total_price for c in mandatory) + sum(c.total_price for c in optional)
            kit_unit_price = products_total * DEFAULT_KIT_PRICE_FACTOR
        total_price = kit_unit_price * kit.effective_quantity
        return KitCalculation(
            kit=kit,
            kit_unit_price=kit_unit_price,
            total_price=total_price,
            vat_amount=self._tax.calculate_group(total_price).amount,
            mandatory_product_calculations=mandatory,
            optional_product_calculations=optional,
        )

    def compute_order(self, order: Order) -> CalculationResult:
        products = tuple(self.calculate_product(p) for p in order.individual_products)
        ensembles = tuple(self.calculate_ensemble(e) for e in order.product_ensembles)
        kits = tuple(self.calculate_kit(k) for k in order.product_kits)

        individual_total = sum(c.total_price for c in products)
        ensemble_total = sum(c.final_total for c in ensembles)
        kit_total = sum(c.total_price for c in kits)
        pre_discount_subtotal = individual_total + ensemble_total + kit_total

        discounts = tuple(
            self._promotions.evaluate_all(order.applied_discount_codes, pre_discount_subtotal)
        )
        # Each code is capped on its own; the sum across codes is not.
        total_discount = sum(d.amount for d in discounts)

        individual_vat = sum(c.vat_amount for c in products)
        ensemble_vat = sum(c.vat_amount for c in ensembles)
        kit_vat = sum(c.vat_amount for c in kits)

        subtotal = pre_discount_subtotal - total_discount
        total_vat = individual_vat + ensemble_vat + kit_vat

        return CalculationResult(
            product_calculations=products,
            ensemble_calculations=ensembles,
            kit_calculations=kits,
            discount_results=discounts,
            individual_products_total=individual_total,
            individual_products_vat=individual_vat,
            ensemble_total=ensemble_total,
            ensemble_vat=ensemble_vat,
            kit_total=kit_total,
            kit_vat=kit_vat,
            pre_discount_subtotal=pre_discount_subtotal,
            total_discount=total_discount,
            subtotal=subtotal,
            total_vat=total_vat,
            grand_total=subtotal + total_vat + order.shipping_cost,
        )
