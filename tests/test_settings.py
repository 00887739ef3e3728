import io
import logging

import pytest

from rollplan.logging_conf import configure_logging, resolve_level
from rollplan.settings import Settings, default_settings


def test_defaults():
    s = default_settings()
    assert s.roll_change_threshold == 2500.0
    assert s.roll_warning_threshold == 1500.0
    assert s.improvement_floor_pct == -5.0
    assert s.high_utilization_pct == 90.0
    assert s.log_level == "INFO"


def test_from_config_overrides_and_ignores_unknown_keys():
    s = Settings.from_config(
        {
            "roll_change_threshold": "3000",
            "improvement_floor_pct": "-2.5",
            "log_level": "debug",
            "high_utilization_pct": "",
            "unrelated_key": "42",
        }
    )
    assert s.roll_change_threshold == 3000.0
    assert s.improvement_floor_pct == -2.5
    assert s.log_level == "DEBUG"
    assert s.high_utilization_pct == 90.0


def test_from_config_rejects_bad_values():
    with pytest.raises(ValueError, match="roll_warning_threshold"):
        Settings.from_config({"roll_warning_threshold": "soon"})
    with pytest.raises(ValueError):
        Settings.from_config({"roll_change_threshold": "-1"})
    with pytest.raises(ValueError):
        Settings.from_config({"roll_warning_threshold": "4000"})


def test_from_empty_config():
    assert Settings.from_config(None) == Settings()
    assert Settings.from_config({}) == Settings()


def test_configure_logging_single_handler():
    stream = io.StringIO()
    configure_logging("debug", stream=stream)
    configure_logging("debug", stream=stream)
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1

    logging.getLogger("rollplan.test").debug("hello %s", "mill")
    assert "[DEBUG] rollplan.test: hello mill" in stream.getvalue()


def test_configure_logging_unknown_level_falls_back_to_info():
    stream = io.StringIO()
    configure_logging("chatty", stream=stream)
    assert logging.getLogger().level == logging.INFO
    assert "Invalid log level: chatty, defaulting to INFO" in stream.getvalue()


def test_resolve_level():
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(logging.ERROR) == logging.ERROR
    assert resolve_level("chatty") is None
    assert resolve_level(None) is None
