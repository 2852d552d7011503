"""Order aggregate and payment details consumed by pricing and reporting."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from catalog import Product, ProductEnsemble, ProductKit
from promotions import DiscountCode

KNOWN_ORDER_STATUSES = ("Pending", "Processing", "Shipped", "Delivered", "Cancelled")
SHIPPED_STATUS = "Shipped"


@dataclass(frozen=True)
class PaymentMethod:
    type: str
    provider: str = ""
    last_four_digits: str = ""
    transaction_date: Optional[datetime] = None
    transaction_id: str = ""
    processing_fee: float = 0.0
    is_verified: bool = False


@dataclass(frozen=True)
class Order:
    order_id: str
    order_date: Optional[datetime]
    customer_id: str
    customer_email: str = ""
    individual_products: Tuple[Product, ...] = ()
    product_ensembles: Tuple[ProductEnsemble, ...] = ()
    product_kits: Tuple[ProductKit, ...] = ()
    applied_discount_codes: Tuple[DiscountCode, ...] = ()
    payment_method: Optional[PaymentMethod] = None
    actual_price_paid: float = 0.0
    shipping_cost: float = 0.0
    status: str = "Pending"
    shipping_address: str = ""
    billing_address: str = ""
    shipped_date: Optional[datetime] = None
    delivered_date: Optional[datetime] = None
    tracking_number: str = ""
    promotional_campaign: str = ""
    is_gift_order: bool = False
    gift_message: str = ""
    requires_signature: bool = False
    order_notes: str = ""

    @property
    def has_line_items(self) -> bool:
        return bool(self.individual_products or self.product_ensembles or self.product_kits)
