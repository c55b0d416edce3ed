from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.anomalies import AnomalyDetector
from .attendance.factory import DayStatusStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository, MySQLDayContextProvider
from .attendance.service import AttendanceService
from .core.settings import EngineSettings
from .database.connection import DBConfig, DatabaseConnection
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.service import LeaveService
from .overtime.mysql_overtime_repository import MySQLOvertimeRepository
from .overtime.service import OvertimeService
from .payroll.calculator.standard_calculator import StandardPrimeExemptionCalculator
from .payroll.mysql_prime_repository import MySQLPrimeRepository
from .payroll.service import PrimeExemptionService
from .recovery.mysql_recovery_repository import MySQLRecoveryRepository
from .recovery.service import RecoveryService
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.service import ScheduleService


@dataclass(frozen=True)
class Container:
    settings: EngineSettings

    schedule_service: ScheduleService
    attendance_service: AttendanceService
    leave_service: LeaveService
    overtime_service: OvertimeService
    recovery_service: RecoveryService
    prime_exemption_service: PrimeExemptionService

    conn: Optional[DatabaseConnection] = None


def build_container(*, db_config: dict, settings: Optional[EngineSettings] = None) -> Container:
    settings = settings or EngineSettings()
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    schedules_repo = MySQLScheduleRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    calendar = MySQLDayContextProvider(conn)
    leaves_repo = MySQLLeaveRepository(conn)
    overtime_repo = MySQLOvertimeRepository(conn)
    recovery_repo = MySQLRecoveryRepository(conn)
    primes_repo = MySQLPrimeRepository(conn)

    attendance_service = AttendanceService(
        attendance_repo,
        schedules_repo,
        calendar,
        settings=settings,
        strategy_factory=DayStatusStrategyFactory(),
        detector=AnomalyDetector(settings.max_daily_worked_minutes),
    )
    calculator = StandardPrimeExemptionCalculator(working_days_per_month=settings.working_days_per_month)

    return Container(
        settings=settings,
        conn=conn,
        schedule_service=ScheduleService(schedules_repo),
        attendance_service=attendance_service,
        leave_service=LeaveService(leaves_repo),
        overtime_service=OvertimeService(overtime_repo),
        recovery_service=RecoveryService(recovery_repo),
        prime_exemption_service=PrimeExemptionService(primes_repo, calculator=calculator),
    )
