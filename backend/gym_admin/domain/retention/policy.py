from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Union

from gym_admin.domain.retention.schedule import CronSchedule

DEFAULT_MAX_AGE_DAYS = 7
DEFAULT_SCHEDULE = "0 0 */7 * *"


@dataclass(frozen=True)
class RetentionPolicy:
    max_age_days: int = DEFAULT_MAX_AGE_DAYS
    schedule: str = DEFAULT_SCHEDULE
    cron: CronSchedule = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.max_age_days <= 0:
            raise ValueError("max_age_days must be positive")
        object.__setattr__(self, "cron", CronSchedule.parse(self.schedule))

    def cutoff(self, now: datetime) -> datetime:
        return now - timedelta(days=self.max_age_days)

    def next_run_after(self, moment: datetime) -> datetime:
        return self.cron.next_after(moment)


@dataclass(frozen=True)
class DeletionOk:
    deleted_count: int
    cutoff: datetime | None = None

    def __post_init__(self) -> None:
        if self.deleted_count < 0:
            raise ValueError("deleted_count must be non-negative")


@dataclass(frozen=True)
class DeletionErr:
    reason: str
    error_type: str = "Exception"
    cutoff: datetime | None = None


DeletionOutcome = Union[DeletionOk, DeletionErr]


def policy_from_settings(app_settings) -> RetentionPolicy:
    return RetentionPolicy(
        max_age_days=app_settings.notification_retention_days,
        schedule=app_settings.notification_retention_schedule,
    )
