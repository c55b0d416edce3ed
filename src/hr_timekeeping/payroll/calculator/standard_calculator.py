from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ...core import constants
from ...core.enums import ExemptionUnit, PrimeFrequency
from ...core.exceptions import ValidationError
from ..model import EmployeePrime, PrimeType
from .base import PrimeExemptionCalculator


class StandardPrimeExemptionCalculator(PrimeExemptionCalculator):
    """Standard rule: daily figures x working days, yearly / 12, percent of the reference salary."""

    def __init__(self, *, working_days_per_month: int = constants.DEFAULT_WORKING_DAYS_PER_MONTH):
        if working_days_per_month <= 0:
            raise ValidationError("working_days_per_month must be positive")
        self._working_days = Decimal(working_days_per_month)

    def monthly_amount(self, prime: EmployeePrime) -> Decimal:
        amount = Decimal(prime.amount)
        if prime.frequency == PrimeFrequency.DAILY:
            return amount * self._working_days
        if prime.frequency == PrimeFrequency.YEARLY:
            return amount / Decimal(12)
        return amount

    def monthly_ceiling(self, prime_type: PrimeType, *, reference_salary: Optional[Decimal]) -> Decimal:
        ceiling = Decimal(prime_type.exemption_ceiling)
        if prime_type.exemption_unit == ExemptionUnit.DAY:
            return ceiling * self._working_days
        if prime_type.exemption_unit == ExemptionUnit.PERCENT:
            if reference_salary is None:
                raise ValidationError(f"Prime {prime_type.code} needs a reference salary (percent ceiling)")
            return ceiling * Decimal(reference_salary) / Decimal(100)
        return ceiling
