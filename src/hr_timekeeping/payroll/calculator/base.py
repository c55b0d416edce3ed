from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from ..model import EmployeePrime, PrimeType


class PrimeExemptionCalculator(ABC):
    """Calculator interface (Strategy Pattern for prime exemptions).

    Both conversions return monthly figures so amount and ceiling compare
    in the same unit.
    """

    @abstractmethod
    def monthly_amount(self, prime: EmployeePrime) -> Decimal:
        raise NotImplementedError

    @abstractmethod
    def monthly_ceiling(self, prime_type: PrimeType, *, reference_salary: Optional[Decimal]) -> Decimal:
        raise NotImplementedError
