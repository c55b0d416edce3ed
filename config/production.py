import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hr_timekeeping"),
}

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = bool(int(os.getenv("LOG_JSON", "1")))

ENGINE = {
    "default_late_tolerance_minutes": int(os.getenv("LATE_TOLERANCE_MINUTES", "15")),
    "default_early_leave_tolerance_minutes": int(os.getenv("EARLY_LEAVE_TOLERANCE_MINUTES", "15")),
    "break_deduction_enabled": bool(int(os.getenv("BREAK_DEDUCTION_ENABLED", "1"))),
    "break_deduction_threshold_minutes": int(os.getenv("BREAK_DEDUCTION_THRESHOLD_MINUTES", "240")),
    "max_daily_worked_minutes": int(os.getenv("MAX_DAILY_WORKED_MINUTES", "720")),
    "min_edit_reason_length": int(os.getenv("MIN_EDIT_REASON_LENGTH", "10")),
    "min_declare_notes_length": int(os.getenv("MIN_DECLARE_NOTES_LENGTH", "5")),
}
