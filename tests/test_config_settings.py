from __future__ import annotations

import pytest
from pydantic import ValidationError

from tutordesk.core.config import Settings


def test_default_secret_key_allowed_in_development() -> None:
    settings = Settings(_env_file=None, app_env="development", secret_key="change-me")
    assert settings.secret_key == "change-me"


def test_default_secret_key_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="production", secret_key="change-me")


def test_placeholder_secret_key_prefix_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="prod", secret_key="change-me-in-production")


def test_custom_secret_key_allowed_in_production() -> None:
    settings = Settings(_env_file=None, app_env="production", secret_key="super-secure-value")
    assert settings.secret_key == "super-secure-value"


def test_platform_timezone_must_be_known() -> None:
    settings = Settings(_env_file=None, platform_timezone="America/Bogota")
    assert settings.platform_timezone == "America/Bogota"

    with pytest.raises(ValidationError):
        Settings(_env_file=None, platform_timezone="Mars/Olympus_Mons")


def test_reminder_defaults_and_bounds() -> None:
    settings = Settings(_env_file=None)

    assert settings.reminder_scheduler_enabled is True
    assert settings.reminder_poll_seconds == 60
    assert settings.reminder_day_before_hours == 24
    assert settings.reminder_short_lead_minutes == 30
    assert settings.notifications_default_limit == 10

    with pytest.raises(ValidationError):
        Settings(_env_file=None, reminder_poll_seconds=0)


def test_settings_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REMINDER_POLL_SECONDS", "15")
    monkeypatch.setenv("REMINDER_SCHEDULER_ENABLED", "false")

    settings = Settings(_env_file=None)

    assert settings.reminder_poll_seconds == 15
    assert settings.reminder_scheduler_enabled is False
