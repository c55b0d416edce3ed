from __future__ import annotations

from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import RecoveryPeriodStatus
from .model import RecoveryDeclaration, RecoveryPeriod


class RecoveryRepository(Protocol):
    """Declaration writes move the period's ``hours_remaining`` in the same transaction.

    Each write is guarded by the period ``version`` read beforehand and by
    ``hours_remaining`` staying non-negative; a failed guard writes nothing.
    """

    def get_period(self, period_id: int) -> Optional[RecoveryPeriod]:
        raise NotImplementedError

    def list_periods(self, *, status: Optional[RecoveryPeriodStatus] = None) -> Sequence[RecoveryPeriod]:
        raise NotImplementedError

    def create_period(self, period: RecoveryPeriod) -> int:
        raise NotImplementedError

    def set_period_status(self, *, period_id: int, status: RecoveryPeriodStatus) -> bool:
        raise NotImplementedError

    def get_declaration(self, declaration_id: int) -> Optional[RecoveryDeclaration]:
        raise NotImplementedError

    def list_declarations(self, *, period_id: int) -> Sequence[RecoveryDeclaration]:
        raise NotImplementedError

    def insert_declaration(self, declaration: RecoveryDeclaration, *, expected_version: int) -> Optional[int]:
        """Debit ``debited_hours`` and insert; returns the new id or None."""

        raise NotImplementedError

    def update_declaration(
        self,
        declaration: RecoveryDeclaration,
        *,
        previous_hours: Decimal,
        expected_version: int,
    ) -> bool:
        """Credit ``previous_hours``, debit the new hours and rewrite an active declaration."""

        raise NotImplementedError

    def delete_declaration(self, declaration: RecoveryDeclaration, *, expected_version: int) -> bool:
        """Credit the hours back and delete an active declaration."""

        raise NotImplementedError

    def complete_declaration(self, *, declaration_id: int) -> bool:
        """active -> completed; False if it was not active."""

        raise NotImplementedError
