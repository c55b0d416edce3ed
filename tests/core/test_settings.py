import json
import logging
from decimal import Decimal
from types import SimpleNamespace

from config import get_settings_module
from hr_timekeeping.core.logging_config import StructuredFormatter
from hr_timekeeping.core.settings import EngineSettings


def test_settings_module_from_env(monkeypatch):
    monkeypatch.setenv("APP_ENV", "prod")
    assert get_settings_module() == "config.production"
    monkeypatch.setenv("APP_ENV", "testing")
    assert get_settings_module() == "config.testing"
    monkeypatch.setenv("APP_ENV", "whatever")
    assert get_settings_module() == "config.development"


def test_engine_settings_overrides_and_defaults():
    module = SimpleNamespace(ENGINE={"max_daily_worked_minutes": 600, "present_ratio": "0.8", "unknown": 1})
    settings = EngineSettings.from_module(module)
    assert settings.max_daily_worked_minutes == 600
    assert settings.present_ratio == Decimal("0.8")
    assert settings.break_deduction_threshold_minutes == 240


def test_engine_settings_without_engine_block():
    assert EngineSettings.from_module(SimpleNamespace()) == EngineSettings()


def test_structured_formatter_includes_extras():
    record = logging.LogRecord("hr_timekeeping.leaves", logging.INFO, __file__, 1, "approved %s", (12,), None)
    record.request_id = 12
    payload = json.loads(StructuredFormatter().format(record))
    assert payload["message"] == "approved 12"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == 12
