import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hr_timekeeping"),
}

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
LOG_JSON = bool(int(os.getenv("LOG_JSON", "0")))

# Rule thresholds; names match EngineSettings fields.
ENGINE = {
    "default_late_tolerance_minutes": int(os.getenv("LATE_TOLERANCE_MINUTES", "15")),
    "default_early_leave_tolerance_minutes": int(os.getenv("EARLY_LEAVE_TOLERANCE_MINUTES", "15")),
    "break_deduction_enabled": bool(int(os.getenv("BREAK_DEDUCTION_ENABLED", "1"))),
    "break_deduction_threshold_minutes": int(os.getenv("BREAK_DEDUCTION_THRESHOLD_MINUTES", "240")),
    "max_daily_worked_minutes": int(os.getenv("MAX_DAILY_WORKED_MINUTES", "720")),
}
