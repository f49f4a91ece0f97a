from gym_admin.domain.retention.policy import (
    DEFAULT_MAX_AGE_DAYS,
    DEFAULT_SCHEDULE,
    DeletionErr,
    DeletionOk,
    DeletionOutcome,
    RetentionPolicy,
    policy_from_settings,
)
from gym_admin.domain.retention.schedule import CronSchedule

__all__ = [
    "CronSchedule",
    "DEFAULT_MAX_AGE_DAYS",
    "DEFAULT_SCHEDULE",
    "DeletionErr",
    "DeletionOk",
    "DeletionOutcome",
    "RetentionPolicy",
    "policy_from_settings",
]
