import argparse
import asyncio
import logging

from gym_admin.domain.notifications import bind_delete_older_than
from gym_admin.domain.retention import DeletionErr, policy_from_settings
from gym_admin.infra.db import dispose_engine, get_session_factory
from gym_admin.infra.logging import configure_logging
from gym_admin.infra.metrics import configure_metrics
from gym_admin.infra.tracing import configure_tracing, shutdown_tracing
from gym_admin.jobs.notification_retention import JOB_NAME
from gym_admin.jobs.scheduler import RetentionScheduler
from gym_admin.settings import settings

logger = logging.getLogger(__name__)

KNOWN_JOBS = (JOB_NAME,)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run scheduled maintenance jobs")
    parser.add_argument("--job", action="append", dest="jobs", choices=KNOWN_JOBS, help="Job name to run")
    parser.add_argument("--once", action="store_true", help="Run one cleanup cycle now and exit")
    return parser


async def run(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging()
    configure_metrics(settings.metrics_enabled, service_name=settings.app_name)
    if settings.tracing_enabled:
        configure_tracing(
            service_name=f"{settings.app_name}-jobs",
            endpoint=settings.otel_exporter_endpoint,
            testing=settings.testing,
        )

    scheduler = RetentionScheduler(
        bind_delete_older_than(get_session_factory()),
        policy_from_settings(settings),
    )
    job_names = args.jobs or list(KNOWN_JOBS)
    logger.info("jobs_runner_start", extra={"extra": {"jobs": job_names, "once": args.once}})
    try:
        if args.once:
            outcome = await scheduler.run_once()
            return 1 if isinstance(outcome, DeletionErr) else 0
        task = scheduler.start()
        try:
            await task
        finally:
            await scheduler.stop()
        return 0
    finally:
        await dispose_engine()
        shutdown_tracing()


def main(argv: list[str] | None = None) -> None:
    raise SystemExit(asyncio.run(run(argv)))


if __name__ == "__main__":
    main()
