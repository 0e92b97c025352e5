import pytest
from fastapi import HTTPException

from core import logging_setup
from prep_api.utils import time_utils, validation


def test_time_utils_formatting() -> None:
    assert time_utils.format_remaining(3 * 3600) == "3:00:00"
    assert time_utils.format_remaining(10799) == "2:59:59"
    assert time_utils.format_remaining(1799) == "29:59"
    assert time_utils.format_remaining(-5) == "00:00"
    assert time_utils.utc_now().endswith("+00:00")


def test_validate_subject() -> None:
    assert validation.validate_subject(" Physics ") == "Physics"
    with pytest.raises(HTTPException) as excinfo:
        validation.validate_subject("Astrology")
    assert excinfo.value.status_code == 400
    with pytest.raises(HTTPException):
        validation.validate_subject(None)
    with pytest.raises(HTTPException):
        validation.validate_subject("  ")


def test_validate_slot() -> None:
    assert validation.validate_slot(0, 30) == 0
    assert validation.validate_slot(29, 30) == 29
    with pytest.raises(HTTPException):
        validation.validate_slot(30, 30)
    with pytest.raises(HTTPException):
        validation.validate_slot(-1, 30)


def test_log_level_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "warning")
    assert logging_setup._level_from_env(10) == 30
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    assert logging_setup._level_from_env(10) == 10
    monkeypatch.delenv("LOG_LEVEL")
    assert logging_setup._level_from_env(20) == 20


def test_server_arguments() -> None:
    import main

    args = main.parse_args(["--port", "9000"])
    assert args.port == 9000
    assert args.host
    assert not args.reload
