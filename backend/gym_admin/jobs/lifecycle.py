import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gym_admin.domain.notifications import bind_delete_older_than
from gym_admin.domain.retention import policy_from_settings
from gym_admin.infra.db import get_session_factory
from gym_admin.jobs.scheduler import RetentionScheduler

logger = logging.getLogger(__name__)

_SCHEDULER: RetentionScheduler | None = None


def get_scheduler() -> RetentionScheduler | None:
    return _SCHEDULER


def register_jobs(
    app_settings,
    *,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> RetentionScheduler | None:
    """Start the process-wide retention scheduler when this process should own it.

    Must be called from inside the running event loop. Repeated calls return
    the scheduler that is already running.
    """
    global _SCHEDULER
    if not app_settings.jobs_should_register:
        logger.info(
            "jobs_registration_skipped",
            extra={
                "extra": {
                    "jobs_enabled": app_settings.jobs_enabled,
                    "process_role": app_settings.process_role,
                }
            },
        )
        return None
    if _SCHEDULER is not None and _SCHEDULER.is_started:
        return _SCHEDULER

    factory = session_factory or get_session_factory()
    scheduler = RetentionScheduler(bind_delete_older_than(factory), policy_from_settings(app_settings))
    scheduler.start()
    _SCHEDULER = scheduler
    return scheduler


async def shutdown_jobs() -> None:
    global _SCHEDULER
    scheduler, _SCHEDULER = _SCHEDULER, None
    if scheduler is not None:
        await scheduler.stop()
