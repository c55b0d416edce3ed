from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import RecoveryDeclarationStatus, RecoveryPeriodStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone
from .model import RecoveryDeclaration, RecoveryPeriod
from .repository import RecoveryRepository


def _row_to_period(r: dict) -> RecoveryPeriod:
    return RecoveryPeriod(
        period_id=int(r["period_id"]),
        name=str(r["name"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        total_hours_to_recover=as_decimal(r["total_hours_to_recover"]),
        hours_remaining=as_decimal(r["hours_remaining"]),
        department_id=r.get("department_id"),
        segment_id=r.get("segment_id"),
        centre_id=r.get("centre_id"),
        applies_to_all=bool(r["applies_to_all"]),
        status=RecoveryPeriodStatus(r["status"]),
        version=int(r["version"]),
    )


def _row_to_declaration(r: dict) -> RecoveryDeclaration:
    return RecoveryDeclaration(
        declaration_id=int(r["declaration_id"]),
        period_id=int(r["period_id"]),
        recovery_date=r["recovery_date"],
        is_day_off=bool(r["is_day_off"]),
        hours_to_recover=as_decimal(r["hours_to_recover"]),
        department_id=r.get("department_id"),
        segment_id=r.get("segment_id"),
        centre_id=r.get("centre_id"),
        notes=r.get("notes"),
        status=RecoveryDeclarationStatus(r["status"]),
    )


# Debit (or credit, with a negative amount) guarded by version and remaining hours.
_MOVE_HOURS = """
    UPDATE recovery_periods
    SET hours_remaining = hours_remaining - %s, version = version + 1
    WHERE period_id=%s AND version=%s AND status='active' AND hours_remaining - %s >= 0
"""


class MySQLRecoveryRepository(RecoveryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_period(self, period_id: int) -> Optional[RecoveryPeriod]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM recovery_periods WHERE period_id=%s", (int(period_id),))
            r = fetchone(cur)
            return _row_to_period(r) if r else None

    def list_periods(self, *, status: Optional[RecoveryPeriodStatus] = None) -> Sequence[RecoveryPeriod]:
        with db_cursor(self._conn_factory) as (_, cur):
            if status is None:
                cur.execute("SELECT * FROM recovery_periods ORDER BY start_date DESC")
            else:
                cur.execute("SELECT * FROM recovery_periods WHERE status=%s ORDER BY start_date DESC", (status.value,))
            return [_row_to_period(r) for r in fetchall(cur)]

    def create_period(self, period: RecoveryPeriod) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO recovery_periods(name, start_date, end_date, total_hours_to_recover, hours_remaining,
                    department_id, segment_id, centre_id, applies_to_all, status, version)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (
                    period.name,
                    period.start_date,
                    period.end_date,
                    period.total_hours_to_recover,
                    period.hours_remaining,
                    period.department_id,
                    period.segment_id,
                    period.centre_id,
                    int(period.applies_to_all),
                    period.status.value,
                ),
            )
            return int(cur.lastrowid)

    def set_period_status(self, *, period_id: int, status: RecoveryPeriodStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE recovery_periods SET status=%s, version=version+1 WHERE period_id=%s",
                (status.value, int(period_id)),
            )
            return cur.rowcount > 0

    def get_declaration(self, declaration_id: int) -> Optional[RecoveryDeclaration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM recovery_declarations WHERE declaration_id=%s", (int(declaration_id),))
            r = fetchone(cur)
            return _row_to_declaration(r) if r else None

    def list_declarations(self, *, period_id: int) -> Sequence[RecoveryDeclaration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM recovery_declarations WHERE period_id=%s ORDER BY recovery_date",
                (int(period_id),),
            )
            return [_row_to_declaration(r) for r in fetchall(cur)]

    def insert_declaration(self, declaration: RecoveryDeclaration, *, expected_version: int) -> Optional[int]:
        hours = declaration.debited_hours
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_MOVE_HOURS, (hours, int(declaration.period_id), int(expected_version), hours))
            if cur.rowcount == 0:
                return None
            cur.execute(
                """
                INSERT INTO recovery_declarations(period_id, recovery_date, is_day_off, hours_to_recover,
                    department_id, segment_id, centre_id, notes, status)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(declaration.period_id),
                    declaration.recovery_date,
                    int(declaration.is_day_off),
                    declaration.hours_to_recover,
                    declaration.department_id,
                    declaration.segment_id,
                    declaration.centre_id,
                    declaration.notes,
                    declaration.status.value,
                ),
            )
            return int(cur.lastrowid)

    def update_declaration(
        self,
        declaration: RecoveryDeclaration,
        *,
        previous_hours: Decimal,
        expected_version: int,
    ) -> bool:
        delta = declaration.debited_hours - previous_hours
        with db_cursor(self._conn_factory) as (conn, cur):
            cur.execute(_MOVE_HOURS, (delta, int(declaration.period_id), int(expected_version), delta))
            if cur.rowcount == 0:
                return False
            cur.execute(
                """
                UPDATE recovery_declarations
                SET recovery_date=%s, hours_to_recover=%s, notes=%s
                WHERE declaration_id=%s AND status='active'
                """,
                (declaration.recovery_date, declaration.hours_to_recover, declaration.notes, int(declaration.declaration_id)),
            )
            if cur.rowcount == 0:
                conn.rollback()
                return False
            return True

    def delete_declaration(self, declaration: RecoveryDeclaration, *, expected_version: int) -> bool:
        credit = -declaration.debited_hours
        with db_cursor(self._conn_factory) as (conn, cur):
            cur.execute(_MOVE_HOURS, (credit, int(declaration.period_id), int(expected_version), credit))
            if cur.rowcount == 0:
                return False
            cur.execute(
                "DELETE FROM recovery_declarations WHERE declaration_id=%s AND status='active'",
                (int(declaration.declaration_id),),
            )
            if cur.rowcount == 0:
                conn.rollback()
                return False
            return True

    def complete_declaration(self, *, declaration_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE recovery_declarations SET status='completed' WHERE declaration_id=%s AND status='active'",
                (int(declaration_id),),
            )
            return cur.rowcount > 0
