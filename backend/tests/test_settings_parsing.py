import pytest
from pydantic import ValidationError

from gym_admin.domain.retention import policy_from_settings
from gym_admin.settings import Settings


def test_retention_defaults():
    settings = Settings(_env_file=None)

    assert settings.notification_retention_days == 7
    assert settings.notification_retention_schedule == "0 0 */7 * *"
    assert settings.jobs_should_register is True

    policy = policy_from_settings(settings)
    assert policy.max_age_days == 7
    assert policy.cron.days_of_month == frozenset({7, 14, 21, 28})


def test_retention_settings_from_env(monkeypatch):
    monkeypatch.setenv("NOTIFICATION_RETENTION_DAYS", "30")
    monkeypatch.setenv("NOTIFICATION_RETENTION_SCHEDULE", "  30 3 * * 0 ")

    settings = Settings(_env_file=None)

    assert settings.notification_retention_days == 30
    assert settings.notification_retention_schedule == "30 3 * * 0"


@pytest.mark.parametrize("days", ["0", "-7"])
def test_non_positive_retention_days_rejected(monkeypatch, days):
    monkeypatch.setenv("NOTIFICATION_RETENTION_DAYS", days)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


@pytest.mark.parametrize("expression", ["every week", "0 0 */7 *", "0 25 * * *"])
def test_invalid_schedule_rejected(monkeypatch, expression):
    monkeypatch.setenv("NOTIFICATION_RETENTION_SCHEDULE", expression)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


@pytest.mark.parametrize(
    "jobs_enabled, process_role, expected",
    [
        ("true", "server", True),
        ("false", "server", False),
        ("true", "build", False),
        ("true", "worker", False),
    ],
)
def test_jobs_register_only_in_server_process(monkeypatch, jobs_enabled, process_role, expected):
    monkeypatch.setenv("JOBS_ENABLED", jobs_enabled)
    monkeypatch.setenv("PROCESS_ROLE", process_role)

    assert Settings(_env_file=None).jobs_should_register is expected
