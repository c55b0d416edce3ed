from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from types import ModuleType

from . import constants


@dataclass(frozen=True)
class EngineSettings:
    """Rule thresholds shared by every service."""

    default_late_tolerance_minutes: int = constants.DEFAULT_LATE_TOLERANCE_MINUTES
    default_early_leave_tolerance_minutes: int = constants.DEFAULT_EARLY_LEAVE_TOLERANCE_MINUTES
    break_deduction_enabled: bool = True
    break_deduction_threshold_minutes: int = constants.DEFAULT_BREAK_DEDUCTION_THRESHOLD_MINUTES
    max_daily_worked_minutes: int = constants.DEFAULT_MAX_DAILY_WORKED_MINUTES
    min_resolution_notes_length: int = constants.MIN_RESOLUTION_NOTES_LENGTH
    min_edit_reason_length: int = constants.MIN_EDIT_REASON_LENGTH
    min_declare_notes_length: int = constants.MIN_DECLARE_NOTES_LENGTH
    present_ratio: Decimal = constants.DEFAULT_PRESENT_RATIO
    working_days_per_month: int = constants.DEFAULT_WORKING_DAYS_PER_MONTH

    @classmethod
    def from_module(cls, settings: ModuleType) -> "EngineSettings":
        """Build from a config module, keeping defaults for missing names."""

        overrides = getattr(settings, "ENGINE", None) or {}
        known = {k: v for k, v in overrides.items() if k in cls.__dataclass_fields__}
        if "present_ratio" in known:
            known["present_ratio"] = Decimal(str(known["present_ratio"]))
        return cls(**known)
