"""VAT calculation shared by pricing and reporting."""
from __future__ import annotations

from dataclasses import dataclass

# Ensembles and kits are taxed at this flat rate whatever their products' own
# VAT rates are. Kept as-is for compatibility with existing audit reports.
GROUP_VAT_RATE = 0.20


@dataclass(frozen=True)
class TaxBreakdown:
    rate: float
    amount: float


class TaxService:
    def calculate(self, taxable_amount: float, rate: float) -> TaxBreakdown:
        effective_rate = max(rate, 0.0)
        return TaxBreakdown(rate=effective_rate, amount=taxable_amount * effective_rate)

    def calculate_group(self, taxable_amount: float) -> TaxBreakdown:
        return TaxBreakdown(rate=GROUP_VAT_RATE, amount=taxable_amount * GROUP_VAT_RATE)
