import asyncio
import logging

import pytest

from backend.core import ConfigurationError, load_app_settings
from backend.engine.stream import (
    RequestContextFilter,
    mask_username,
    request_logging_context,
)


def test_defaults(monkeypatch):
    monkeypatch.delenv("ATTENDANCE_THRESHOLD", raising=False)

    loaded = load_app_settings()

    assert loaded.ATTENDANCE_THRESHOLD == 75
    assert loaded.AUTH_COOKIE_NAME == "auth_token"
    assert loaded.auth_cookie_max_age == 365 * 24 * 60 * 60


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PORTAL_BASE_URL", "https://portal.example/api")
    monkeypatch.setenv("ENABLE_BACKEND_WEB", "false")

    loaded = load_app_settings()

    assert loaded.PORTAL_BASE_URL == "https://portal.example/api"
    assert loaded.ENABLE_BACKEND_WEB is False


@pytest.mark.parametrize("value", ["0", "100", "abc"])
def test_invalid_threshold_is_a_configuration_error(monkeypatch, value):
    monkeypatch.setenv("ATTENDANCE_THRESHOLD", value)

    with pytest.raises(ConfigurationError):
        load_app_settings()


def _record() -> logging.LogRecord:
    return logging.LogRecord("attendance", logging.INFO, __file__, 1, "msg", None, None)


def test_request_id_defaults_to_dash():
    record = _record()

    RequestContextFilter().filter(record)

    assert record.request_id == "-"


def test_request_id_is_scoped_to_context():
    async def capture():
        async with request_logging_context("req-7"):
            inside = _record()
            RequestContextFilter().filter(inside)
        outside = _record()
        RequestContextFilter().filter(outside)
        return inside.request_id, outside.request_id

    assert asyncio.run(capture()) == ("req-7", "-")


@pytest.mark.parametrize(
    "username,expected",
    [(None, "-"), ("", "-"), ("abc", "***"), ("2100290100042", "2100***")],
)
def test_mask_username(username, expected):
    assert mask_username(username) == expected
