from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import EmployeePrime, PrimeType


class PrimeRepository(Protocol):
    def list_prime_types(self) -> Sequence[PrimeType]:
        raise NotImplementedError

    def get_prime_type(self, code: str) -> Optional[PrimeType]:
        raise NotImplementedError

    def list_employee_primes(self, employee_id: int) -> Sequence[EmployeePrime]:
        raise NotImplementedError
