from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Optional

from ..core import constants
from ..core.enums import PrimeCategory
from ..core.exceptions import NotFoundError
from .calculator.base import PrimeExemptionCalculator
from .calculator.standard_calculator import StandardPrimeExemptionCalculator
from .model import EmployeePrime, ExemptionSummary, PrimeExemption, PrimeType
from .repository import PrimeRepository

logger = logging.getLogger(__name__)

_ZERO = Decimal("0.00")


def _money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(constants.MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def compute_prime_exemptions(
    prime_types: Mapping[str, PrimeType],
    employee_primes: Iterable[EmployeePrime],
    *,
    reference_salary: Optional[Decimal] = None,
    calculator: Optional[PrimeExemptionCalculator] = None,
    employee_id: Optional[int] = None,
) -> ExemptionSummary:
    """Split each active prime into exempt and taxable monthly amounts.

    ``exoneree`` primes are exempt up to the type's ceiling; ``imposable``
    primes are fully taxable. No state, no I/O.
    """

    calc = calculator or StandardPrimeExemptionCalculator()
    items = []
    for prime in employee_primes:
        if not prime.is_active:
            continue
        prime_type = prime_types.get(prime.prime_code)
        if prime_type is None:
            raise NotFoundError("PrimeType", prime.prime_code)

        amount = _money(calc.monthly_amount(prime))
        if prime_type.category == PrimeCategory.EXONEREE:
            ceiling = _money(calc.monthly_ceiling(prime_type, reference_salary=reference_salary))
            exempt = max(min(amount, ceiling), _ZERO)
        else:
            ceiling = _ZERO
            exempt = _ZERO
        items.append(
            PrimeExemption(
                prime_code=prime.prime_code,
                category=prime_type.category,
                amount=amount,
                ceiling=ceiling,
                exempt_amount=exempt,
                taxable_excess=max(amount - exempt, _ZERO),
            )
        )

    return ExemptionSummary(
        employee_id=employee_id,
        items=tuple(items),
        total_amount=sum((i.amount for i in items), _ZERO),
        total_exempt=sum((i.exempt_amount for i in items), _ZERO),
        total_taxable=sum((i.taxable_excess for i in items), _ZERO),
    )


class PrimeExemptionService:
    def __init__(self, primes: PrimeRepository, *, calculator: Optional[PrimeExemptionCalculator] = None):
        self._primes = primes
        self._calculator = calculator or StandardPrimeExemptionCalculator()

    def compute_for_employee(self, *, employee_id: int, reference_salary: Optional[Decimal] = None) -> ExemptionSummary:
        types = {t.code: t for t in self._primes.list_prime_types()}
        summary = compute_prime_exemptions(
            types,
            self._primes.list_employee_primes(int(employee_id)),
            reference_salary=reference_salary,
            calculator=self._calculator,
            employee_id=int(employee_id),
        )
        logger.debug(
            "Prime exemptions for employee %s: exempt=%s taxable=%s",
            employee_id,
            summary.total_exempt,
            summary.total_taxable,
        )
        return summary
