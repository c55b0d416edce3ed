from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Day status stored on an attendance record."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EARLY_LEAVE = "early_leave"
    PARTIAL = "partial"
    HALF_DAY = "half_day"
    LEAVE = "leave"
    SICK = "sick"
    MISSION = "mission"
    TRAINING = "training"
    HOLIDAY = "holiday"
    WEEKEND = "weekend"
    RECOVERY_OFF = "recovery_off"
    RECOVERY_PAID = "recovery_paid"
    RECOVERY_UNPAID = "recovery_unpaid"


# Statuses where the employee is expected to have clocked in and out.
PRESENCE_STATUSES = frozenset(
    {
        AttendanceStatus.PRESENT,
        AttendanceStatus.LATE,
        AttendanceStatus.EARLY_LEAVE,
        AttendanceStatus.PARTIAL,
        AttendanceStatus.HALF_DAY,
        AttendanceStatus.RECOVERY_PAID,
        AttendanceStatus.RECOVERY_UNPAID,
    }
)

# Derived statuses a manual status may not overwrite.
PROTECTED_STATUSES = frozenset(
    {
        AttendanceStatus.WEEKEND,
        AttendanceStatus.HOLIDAY,
        AttendanceStatus.LEAVE,
        AttendanceStatus.RECOVERY_OFF,
        AttendanceStatus.RECOVERY_PAID,
        AttendanceStatus.RECOVERY_UNPAID,
        AttendanceStatus.MISSION,
        AttendanceStatus.TRAINING,
        AttendanceStatus.SICK,
    }
)


class AttendanceSource(str, Enum):
    CLOCK = "clock"
    MANUAL = "manual"
    IMPORT = "import"


class AnomalyType(str, Enum):
    MISSING_CHECK_IN = "missing_check_in"
    MISSING_CHECK_OUT = "missing_check_out"
    EXCESSIVE_HOURS = "excessive_hours"
    LATE_WITHOUT_STATUS = "late_without_status"
    EARLY_DEPARTURE = "early_departure"
    WEEKEND_WORK_UNPLANNED = "weekend_work_unplanned"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED_N1 = "approved_n1"
    APPROVED_N2 = "approved_n2"
    APPROVED_HR = "approved_hr"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalStage(str, Enum):
    """Sequential approval levels: direct manager, manager's manager, HR."""

    N1 = "n1"
    N2 = "n2"
    HR = "hr"


class OvertimeStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class OvertimePriority(str, Enum):
    URGENT = "urgent"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


class OvertimeRequestType(str, Enum):
    PLANNED = "planned"
    URGENT = "urgent"


class RecoveryPeriodStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"


class RecoveryDeclarationStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class PrimeCategory(str, Enum):
    IMPOSABLE = "imposable"
    EXONEREE = "exoneree"


class ExemptionUnit(str, Enum):
    MONTH = "month"
    DAY = "day"
    PERCENT = "percent"


class PrimeFrequency(str, Enum):
    MONTHLY = "monthly"
    DAILY = "daily"
    YEARLY = "yearly"
    ONE_TIME = "one_time"
