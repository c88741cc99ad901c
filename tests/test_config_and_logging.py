import logging

from keyward import config as config_module
from keyward import logs as logs_module
from keyward.logs import configure_logging


def test_settings_singleton_exists_and_matches_get_settings():
    assert hasattr(config_module, "settings")
    assert config_module.get_settings() is config_module.settings


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("KEYWARD_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("KEYWARD_AUDIT_JSON", "true")

    settings = config_module.Settings()

    assert settings.log_level == "DEBUG"
    assert settings.audit_json is True
    assert settings.audit_enabled is True


def test_configure_logging_uses_settings_level(monkeypatch):
    called = {}

    def fake_basicConfig(*, level=None, **kwargs):
        called["level"] = level

    monkeypatch.setattr(logging, "basicConfig", fake_basicConfig)
    monkeypatch.setattr(logs_module.settings, "log_level", "WARNING")
    configure_logging()
    assert called["level"] == logging.WARNING


def test_configure_logging_verbose_forces_debug(monkeypatch):
    called = {}

    def fake_basicConfig(*, level=None, **kwargs):
        called["level"] = level

    monkeypatch.setattr(logging, "basicConfig", fake_basicConfig)
    configure_logging(verbose=True)
    assert called["level"] == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
