from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import Container, build_container
from .core.logging_config import configure_logging
from .core.settings import EngineSettings
from .database.bootstrap import apply_schema, list_tables
from .leaves.controller import register as register_leaves
from .overtime.controller import register as register_overtime
from .payroll.controller import register as register_payroll
from .recovery.controller import register as register_recovery
from .schedules.controller import register as register_schedules

logger = logging.getLogger(__name__)


def create_app(*, container: Optional[Container] = None) -> Flask:
    """App factory. Pass ``container`` to run on prebuilt services (no database setup)."""

    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"), json_output=bool(getattr(settings, "LOG_JSON", False)))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "Starting with settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[2] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        container = build_container(db_config=db_config, settings=EngineSettings.from_module(settings))

    register_schedules(app, container)
    register_attendance(app, container)
    register_leaves(app, container)
    register_overtime(app, container)
    register_recovery(app, container)
    register_payroll(app, container)

    return app
