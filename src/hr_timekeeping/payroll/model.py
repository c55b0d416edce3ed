from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from ..core.enums import ExemptionUnit, PrimeCategory, PrimeFrequency


@dataclass(frozen=True)
class PrimeType:
    code: str
    name: str
    category: PrimeCategory
    exemption_ceiling: Decimal = Decimal("0")
    exemption_unit: ExemptionUnit = ExemptionUnit.MONTH


@dataclass(frozen=True)
class EmployeePrime:
    employee_id: int
    prime_code: str
    amount: Decimal
    frequency: PrimeFrequency = PrimeFrequency.MONTHLY
    is_active: bool = True
    employee_prime_id: Optional[int] = None


@dataclass(frozen=True)
class PrimeExemption:
    """Monthly split of one prime into its exempt and taxable parts."""

    prime_code: str
    category: PrimeCategory
    amount: Decimal
    ceiling: Decimal
    exempt_amount: Decimal
    taxable_excess: Decimal


@dataclass(frozen=True)
class ExemptionSummary:
    employee_id: Optional[int]
    items: Tuple[PrimeExemption, ...]
    total_amount: Decimal
    total_exempt: Decimal
    total_taxable: Decimal
