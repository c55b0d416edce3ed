"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_LATE_TOLERANCE_MINUTES = 15
DEFAULT_EARLY_LEAVE_TOLERANCE_MINUTES = 15
DEFAULT_BREAK_DEDUCTION_THRESHOLD_MINUTES = 4 * 60
DEFAULT_MAX_DAILY_WORKED_MINUTES = 12 * 60
DEFAULT_SCHEDULED_HOURS = 8
DEFAULT_PRESENT_RATIO = Decimal("0.9")
DEFAULT_WORKING_DAYS_PER_MONTH = 26

MIN_RESOLUTION_NOTES_LENGTH = 1
MIN_EDIT_REASON_LENGTH = 10
MIN_DECLARE_NOTES_LENGTH = 5

HOURS_QUANTUM = Decimal("0.01")
MONEY_QUANTUM = Decimal("0.01")

DEFAULT_LIST_LIMIT = 200
