"""Product catalog value objects: single products, ensembles and kits."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    rrp: float
    vat_rate: float
    quantity: int
    category: str = ""
    supplier: str = ""
    created_date: Optional[datetime] = None

    @property
    def effective_quantity(self) -> int:
        return max(self.quantity, 1)


@dataclass(frozen=True)
class ProductEnsemble:
    """A themed bundle of products sold together under one group discount."""

    id: str
    name: str
    products: Tuple[Product, ...] = ()
    ensemble_discount: float = 0.0
    theme: str = ""
    quantity: int = 1
    created_date: Optional[datetime] = None

    @property
    def effective_quantity(self) -> int:
        return max(self.quantity, 1)


@dataclass(frozen=True)
class ProductKit:
    """Mandatory and optional products sold at a fixed (or derived) kit price."""

    id: str
    name: str
    mandatory_products: Tuple[Product, ...] = ()
    optional_products: Tuple[Product, ...] = ()
    kit_price: float = 0.0
    kit_type: str = ""
    quantity: int = 1
    is_customizable: bool = False
    created_date: Optional[datetime] = None

    @property
    def effective_quantity(self) -> int:
        return max(self.quantity, 1)

    @property
    def product_count(self) -> int:
        return len(self.mandatory_products) + len(self.optional_products)
