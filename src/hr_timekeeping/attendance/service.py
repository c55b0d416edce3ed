from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, time
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..common.validators import require_min_length
from ..core import constants
from ..core.enums import PROTECTED_STATUSES, AnomalyType, AttendanceSource, AttendanceStatus
from ..core.exceptions import ConflictError, InvalidStateTransition, NotFoundError
from ..core.settings import EngineSettings
from ..schedules.repository import ScheduleRepository
from .anomalies import AnomalyDetector
from .factory import DayStatusStrategyFactory
from .model import AttendanceRecord, ResolutionOutcome
from .repository import AttendanceRepository, DayContextProvider
from .strategies.base import DayInput
from .time_ledger import BreakPolicy, compute_worked_minutes, validate_time_range

logger = logging.getLogger(__name__)


def _punch_now_present(record: AttendanceRecord) -> bool:
    if record.anomaly_type == AnomalyType.MISSING_CHECK_IN:
        return record.check_in is not None
    if record.anomaly_type == AnomalyType.MISSING_CHECK_OUT:
        return record.check_out is not None
    return False


@dataclass(frozen=True)
class DayEvaluation:
    status: AttendanceStatus
    worked_minutes: Optional[int]
    anomaly: Optional[AnomalyType]
    note: Optional[str] = None
    overtime_minutes: int = 0


class AttendanceService:
    """Creates, edits and resolves attendance records.

    Every write goes through ``update_if_version`` so two editors working
    from the same snapshot cannot both succeed.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        schedules: ScheduleRepository,
        calendar: DayContextProvider,
        *,
        settings: EngineSettings | None = None,
        strategy_factory: DayStatusStrategyFactory | None = None,
        detector: AnomalyDetector | None = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._attendance = attendance
        self._schedules = schedules
        self._calendar = calendar
        self._settings = settings or EngineSettings()
        self._factory = strategy_factory or DayStatusStrategyFactory()
        self._detector = detector or AnomalyDetector(self._settings.max_daily_worked_minutes)
        self._clock = clock

    @property
    def break_policy(self) -> BreakPolicy:
        return BreakPolicy(
            enabled=self._settings.break_deduction_enabled,
            threshold_minutes=self._settings.break_deduction_threshold_minutes,
        )

    def evaluate(
        self,
        *,
        employee_id: int,
        work_date: date,
        check_in: Optional[time],
        check_out: Optional[time],
        manual_status: Optional[AttendanceStatus] = None,
        keep_manual_status: bool = False,
        open_day: bool = False,
    ) -> DayEvaluation:
        """Worked minutes, status and anomaly for one employee/date.

        ``manual_status`` replaces the derived status unless the derived one
        is protected (holiday, leave, recovery...). With ``keep_manual_status``
        the manual value is used as is. ``open_day`` marks a day the employee
        may still clock out of.
        """

        validate_time_range(check_in, check_out)
        schedule = self._schedules.get_active()
        context = self._calendar.get_day_context(employee_id=employee_id, work_date=work_date)

        worked = compute_worked_minutes(check_in, check_out, schedule, policy=self.break_policy)

        day = DayInput(work_date=work_date, check_in=check_in, check_out=check_out, schedule=schedule, context=context)
        decision = self._factory.for_day(day).decide(day, settings=self._settings)

        status = decision.status
        if manual_status is not None and (keep_manual_status or status not in PROTECTED_STATUSES):
            status = manual_status

        anomaly = self._detector.detect(
            work_date=work_date,
            check_in=check_in,
            check_out=check_out,
            status=status,
            worked_minutes=worked,
            schedule=schedule,
            context=context,
            open_day=open_day,
        )
        return DayEvaluation(
            status=status,
            worked_minutes=worked,
            anomaly=anomaly,
            note=decision.note,
            overtime_minutes=decision.overtime_minutes,
        )

    def close_day(self, *, work_date: date) -> Sequence[AttendanceRecord]:
        """End of day: flag records still waiting for a check-out.

        A record clocked out concurrently is skipped. Returns the flagged records.
        """

        closed = []
        for record in self._attendance.list_open_days(work_date):
            ev = self.evaluate(
                employee_id=record.employee_id,
                work_date=work_date,
                check_in=record.check_in,
                check_out=record.check_out,
                manual_status=record.status if record.is_manual_entry else None,
            )
            if ev.anomaly is None:
                continue
            try:
                closed.append(self._write(self._with_detection(record, ev.anomaly), expected_version=record.version))
            except ConflictError:
                logger.info("Attendance %s changed while closing %s; skipped", record.attendance_id, work_date)
        logger.info("Closed %s: %s record(s) without check-out", work_date, len(closed))
        return closed

    # ----- creation -----

    def ingest_clock(
        self,
        *,
        employee_id: int,
        work_date: date,
        check_in: Optional[time],
        check_out: Optional[time] = None,
        source: AttendanceSource = AttendanceSource.CLOCK,
    ) -> AttendanceRecord:
        """Record punches from a clock or import; a second call completes the day."""

        existing = self._attendance.get_for_employee_and_date(employee_id, work_date)
        if existing is None:
            ev = self.evaluate(
                employee_id=employee_id,
                work_date=work_date,
                check_in=check_in,
                check_out=check_out,
                open_day=check_out is None,
            )
            record = AttendanceRecord(
                attendance_id=0,
                employee_id=employee_id,
                work_date=work_date,
                check_in=check_in,
                check_out=check_out,
                status=ev.status,
                worked_minutes=ev.worked_minutes,
                source=source,
                notes=ev.note,
                is_anomaly=ev.anomaly is not None,
                anomaly_type=ev.anomaly,
            )
            new_id = self._attendance.create(record)
            logger.info("Attendance %s created for employee %s on %s (%s)", new_id, employee_id, work_date, ev.status.value)
            return replace(record, attendance_id=new_id)

        if existing.is_manual_entry:
            raise InvalidStateTransition("manual", "overwrite with clock punches")

        new_in = check_in if check_in is not None else existing.check_in
        new_out = check_out if check_out is not None else existing.check_out
        ev = self.evaluate(
            employee_id=employee_id,
            work_date=work_date,
            check_in=new_in,
            check_out=new_out,
            open_day=new_out is None,
        )
        updated = self._with_detection(
            replace(existing, check_in=new_in, check_out=new_out, status=ev.status, worked_minutes=ev.worked_minutes),
            ev.anomaly,
        )
        return self._write(updated, expected_version=existing.version)

    def declare(
        self,
        *,
        employee_id: int,
        work_date: date,
        check_in: Optional[time],
        check_out: Optional[time],
        notes: str,
        actor_id: int,
        status: Optional[AttendanceStatus] = None,
    ) -> AttendanceRecord:
        text = require_min_length(notes, "Declaration notes", self._settings.min_declare_notes_length)
        if self._attendance.get_for_employee_and_date(employee_id, work_date) is not None:
            raise ConflictError("AttendanceRecord", f"{employee_id}@{work_date.isoformat()}")

        ev = self.evaluate(
            employee_id=employee_id,
            work_date=work_date,
            check_in=check_in,
            check_out=check_out,
            manual_status=status,
        )
        record = AttendanceRecord(
            attendance_id=0,
            employee_id=employee_id,
            work_date=work_date,
            check_in=check_in,
            check_out=check_out,
            status=ev.status,
            worked_minutes=ev.worked_minutes,
            is_manual_entry=True,
            source=AttendanceSource.MANUAL,
            notes=text,
            is_anomaly=ev.anomaly is not None,
            anomaly_type=ev.anomaly,
            corrected_by=actor_id,
            corrected_at=self._clock(),
        )
        new_id = self._attendance.create(record)
        logger.info("Attendance %s declared by %s for employee %s on %s", new_id, actor_id, employee_id, work_date)
        return replace(record, attendance_id=new_id)

    # ----- mutation -----

    def admin_edit(
        self,
        *,
        attendance_id: int,
        check_in: Optional[time],
        check_out: Optional[time],
        reason: str,
        actor_id: int,
        status: Optional[AttendanceStatus] = None,
        expected_version: Optional[int] = None,
    ) -> AttendanceRecord:
        text = require_min_length(reason, "Correction reason", self._settings.min_edit_reason_length)
        record = self._load(attendance_id, expected_version)

        ev = self.evaluate(
            employee_id=record.employee_id,
            work_date=record.work_date,
            check_in=check_in,
            check_out=check_out,
            manual_status=status,
        )

        # Originals are captured on the first correction only.
        first_correction = record.correction_reason is None
        updated = replace(
            record,
            check_in=check_in,
            check_out=check_out,
            status=ev.status,
            worked_minutes=ev.worked_minutes,
            is_manual_entry=True,
            original_check_in=record.check_in if first_correction else record.original_check_in,
            original_check_out=record.check_out if first_correction else record.original_check_out,
            corrected_by=actor_id,
            corrected_at=self._clock(),
            correction_reason=text,
        )
        updated = self._with_detection(updated, ev.anomaly)
        logger.info("Attendance %s edited by %s (%s -> %s)", attendance_id, actor_id, record.status.value, ev.status.value)
        return self._write(updated, expected_version=record.version)

    def resolve(
        self,
        *,
        attendance_id: int,
        corrected_status: AttendanceStatus,
        resolution_notes: str,
        resolver_id: int,
        corrected_check_in: Optional[time] = None,
        corrected_check_out: Optional[time] = None,
        expected_version: Optional[int] = None,
    ) -> ResolutionOutcome:
        """Apply corrected values to an anomalous record.

        A ``None`` corrected time keeps the stored one. When the corrected
        values still break a rule the record stays anomalous (with the new
        type) and ``still_anomalous`` is True.
        """

        notes = require_min_length(resolution_notes, "Resolution notes", self._settings.min_resolution_notes_length)
        record = self._load(attendance_id, expected_version)
        if not record.is_anomaly:
            raise InvalidStateTransition("resolved" if record.anomaly_resolved else "no_anomaly", "resolve anomaly")

        check_in = corrected_check_in if corrected_check_in is not None else record.check_in
        check_out = corrected_check_out if corrected_check_out is not None else record.check_out
        ev = self.evaluate(
            employee_id=record.employee_id,
            work_date=record.work_date,
            check_in=check_in,
            check_out=check_out,
            manual_status=corrected_status,
            keep_manual_status=True,
        )

        still_anomalous = ev.anomaly is not None
        updated = replace(
            record,
            check_in=check_in,
            check_out=check_out,
            status=ev.status,
            worked_minutes=ev.worked_minutes,
            is_anomaly=still_anomalous,
            anomaly_type=ev.anomaly if still_anomalous else record.anomaly_type,
            anomaly_resolved=not still_anomalous,
            anomaly_resolved_by=resolver_id,
            anomaly_resolved_at=self._clock(),
            anomaly_resolution_notes=notes,
        )
        saved = self._write(updated, expected_version=record.version)
        if still_anomalous:
            logger.warning(
                "Attendance %s still anomalous after resolution by %s: %s",
                attendance_id,
                resolver_id,
                ev.anomaly.value,
            )
        else:
            logger.info("Attendance %s anomaly resolved by %s", attendance_id, resolver_id)
        return ResolutionOutcome(record=saved, still_anomalous=still_anomalous)

    # ----- projections -----

    def get_record(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if record is None:
            raise NotFoundError("AttendanceRecord", attendance_id)
        return record

    def list_unresolved_anomalies(self, *, limit: int = constants.DEFAULT_LIST_LIMIT) -> Sequence[AttendanceRecord]:
        return self._attendance.list_unresolved_anomalies(limit=int(limit))

    # ----- helpers -----

    def _load(self, attendance_id: int, expected_version: Optional[int]) -> AttendanceRecord:
        record = self.get_record(attendance_id)
        if expected_version is not None and int(expected_version) != record.version:
            raise ConflictError("AttendanceRecord", attendance_id, current_status=record.status.value)
        return record

    @staticmethod
    def _with_detection(record: AttendanceRecord, anomaly: Optional[AnomalyType]) -> AttendanceRecord:
        # Clearing a rule-based anomaly takes an explicit resolution; a missing
        # punch that the stored values now contain is dropped.
        if anomaly is not None:
            return replace(record, is_anomaly=True, anomaly_type=anomaly, anomaly_resolved=False)
        if record.is_anomaly and _punch_now_present(record):
            return replace(record, is_anomaly=False, anomaly_type=None)
        return record

    def _write(self, record: AttendanceRecord, *, expected_version: int) -> AttendanceRecord:
        if not self._attendance.update_if_version(record, expected_version=expected_version):
            latest = self._attendance.get_by_id(record.attendance_id)
            logger.warning("Attendance %s write rejected: version %s is stale", record.attendance_id, expected_version)
            raise ConflictError(
                "AttendanceRecord",
                record.attendance_id,
                current_status=latest.status.value if latest else None,
            )
        return replace(record, version=expected_version + 1)
