"""Discount code rules: eligibility, discount amounts and usage accounting."""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional, Tuple

if TYPE_CHECKING:
    from orders import Order


@dataclass(frozen=True)
class DiscountCode:
    code: str
    discount_percentage: float
    max_discount_amount: float
    valid_from: datetime
    valid_to: datetime
    max_usages: int
    current_usages: int = 0
    applicable_categories: Tuple[str, ...] = ()
    min_order_amount: float = 0.0
    is_active: bool = True


@dataclass(frozen=True)
class DiscountResult:
    code: str
    eligible: bool
    amount: float = 0.0
    reason: Optional[str] = None


class PromotionService:
    """Evaluates discount codes against a pre-discount order subtotal.

    Evaluation never touches ``current_usages``; callers that want to consume
    a usage do so explicitly through :meth:`record_usage` or
    :meth:`record_order_usages` once the order has been processed.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock

    def ineligibility_reason(self, code: DiscountCode, subtotal: float) -> Optional[str]:
        if not code.is_active:
            return "inactive"
        now = self._clock()
        if now < code.valid_from or now > code.valid_to:
            return "outside_validity_window"
        if code.current_usages >= code.max_usages:
            return "usage_limit_reached"
        if subtotal < code.min_order_amount:
            return "below_minimum_order"
        return None

    def is_eligible(self, code: DiscountCode, subtotal: float) -> bool:
        return self.ineligibility_reason(code, subtotal) is None

    def evaluate(self, code: DiscountCode, subtotal: float) -> DiscountResult:
        reason = self.ineligibility_reason(code, subtotal)
        if reason is not None:
            return DiscountResult(code=code.code, eligible=False, reason=reason)
        amount = min(subtotal * code.discount_percentage, code.max_discount_amount)
        return DiscountResult(code=code.code, eligible=True, amount=amount)

    def evaluate_all(self, codes: Iterable[DiscountCode], subtotal: float) -> List[DiscountResult]:
        return [self.evaluate(code, subtotal) for code in codes]

    @staticmethod
    def record_usage(code: DiscountCode) -> DiscountCode:
        return replace(code, current_usages=code.current_usages + 1)

    def record_order_usages(self, order: "Order", subtotal: float) -> "Order":
        """Return a copy of ``order`` with a usage consumed on every eligible code."""
        updated = tuple(
            self.record_usage(code) if self.is_eligible(code, subtotal) else code
            for code in order.applied_discount_codes
        )
        return replace(order, applied_discount_codes=updated)
