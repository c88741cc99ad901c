import logging

import pytest
import structlog

from keyward.audit.logger import configure_audit_logging


@pytest.fixture
def captured(monkeypatch):
    captured = {}
    orig_make = structlog.make_filtering_bound_logger

    def fake_make_filtering_bound_logger(level):
        captured["structlog_level"] = level
        return orig_make(level)

    monkeypatch.setattr(structlog, "make_filtering_bound_logger", fake_make_filtering_bound_logger)
    yield captured
    structlog.reset_defaults()


@pytest.mark.parametrize(
    "log_level, expected",
    [
        ("INFO", logging.INFO),
        ("debug", logging.DEBUG),
        ("WARNING", logging.WARNING),
        ("nonsense", logging.INFO),
        (40, logging.ERROR),
    ],
)
def test_configure_audit_logging_levels(captured, log_level, expected):
    configure_audit_logging(log_level=log_level, json_format=False)

    assert captured["structlog_level"] == expected


def test_configure_audit_logging_json_renderer(captured):
    configure_audit_logging(log_level="INFO", json_format=True)

    processors = structlog.get_config()["processors"]
    assert isinstance(processors[-1], structlog.processors.JSONRenderer)


def test_configure_audit_logging_console_renderer(captured):
    configure_audit_logging(log_level="INFO", json_format=False)

    processors = structlog.get_config()["processors"]
    assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
