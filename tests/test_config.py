"""
Tests for Settings
"""

from config import Settings, get_settings


def test_settings_config_is_declared_with_model_config():
    assert Settings.model_config["env_file"] == ".env"
    assert Settings.model_config["env_file_encoding"] == "utf-8"
    assert Settings.model_config["case_sensitive"] is True


def test_no_class_based_config():
    assert "Config" not in vars(Settings)


def test_environment_overrides_defaults(monkeypatch):
    monkeypatch.setenv("MISSED_SWEEP_CRON", "30 22 * * *")
    monkeypatch.setenv("STORE_LOCK_TIMEOUT_SECONDS", "2.5")

    current = Settings(_env_file=None)

    assert current.MISSED_SWEEP_CRON == "30 22 * * *"
    assert current.STORE_LOCK_TIMEOUT_SECONDS == 2.5


def test_environment_names_are_case_sensitive(monkeypatch):
    monkeypatch.setenv("missed_sweep_cron", "30 22 * * *")

    assert Settings(_env_file=None).MISSED_SWEEP_CRON == "59 23 * * *"


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
