from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import ExemptionUnit, PrimeCategory, PrimeFrequency
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone
from .model import EmployeePrime, PrimeType
from .repository import PrimeRepository


def _row_to_type(r: dict) -> PrimeType:
    return PrimeType(
        code=str(r["code"]),
        name=str(r["name"]),
        category=PrimeCategory(r["category"]),
        exemption_ceiling=as_decimal(r["exemption_ceiling"]),
        exemption_unit=ExemptionUnit(r["exemption_unit"]),
    )


class MySQLPrimeRepository(PrimeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_prime_types(self) -> Sequence[PrimeType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT code, name, category, exemption_ceiling, exemption_unit FROM prime_types ORDER BY code")
            return [_row_to_type(r) for r in fetchall(cur)]

    def get_prime_type(self, code: str) -> Optional[PrimeType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT code, name, category, exemption_ceiling, exemption_unit FROM prime_types WHERE code=%s",
                (code,),
            )
            r = fetchone(cur)
            return _row_to_type(r) if r else None

    def list_employee_primes(self, employee_id: int) -> Sequence[EmployeePrime]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_prime_id, employee_id, prime_code, amount, frequency, is_active
                FROM employee_primes
                WHERE employee_id=%s
                ORDER BY employee_prime_id
                """,
                (int(employee_id),),
            )
            return [
                EmployeePrime(
                    employee_prime_id=int(r["employee_prime_id"]),
                    employee_id=int(r["employee_id"]),
                    prime_code=str(r["prime_code"]),
                    amount=as_decimal(r["amount"]),
                    frequency=PrimeFrequency(r["frequency"]),
                    is_active=bool(r["is_active"]),
                )
                for r in fetchall(cur)
            ]
