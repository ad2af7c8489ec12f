from __future__ import annotations

import pytest

from flashmath.app.settings import AppSettings


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("APP_NAME", "APP_ENV", "LOG_LEVEL", "SRS_MATURE_REPETITIONS"):
        monkeypatch.delenv(name, raising=False)

    settings = AppSettings.from_env()

    assert settings.app_name == "FlashMath"
    assert settings.app_env == "development"
    assert settings.log_level == "INFO"
    assert settings.mature_repetitions == 6


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_NAME", "FlashMath Desktop")
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("SRS_MATURE_REPETITIONS", "8")

    settings = AppSettings.from_env()

    assert settings.app_name == "FlashMath Desktop"
    assert settings.app_env == "production"
    assert settings.log_level == "DEBUG"
    assert settings.mature_repetitions == 8


@pytest.mark.parametrize("value", ["six", "0", "-3"])
def test_settings_reject_invalid_mature_repetitions(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("SRS_MATURE_REPETITIONS", value)

    with pytest.raises(RuntimeError):
        AppSettings.from_env()
