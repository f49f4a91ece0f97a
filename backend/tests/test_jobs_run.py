from datetime import datetime, timedelta, timezone

import pytest

from gym_admin.domain.notifications import count_notifications
from gym_admin.domain.notifications.db_models import Notification
from gym_admin.infra import tracing as tracing_module
from gym_admin.jobs import run as jobs_run


@pytest.mark.anyio
async def test_run_once_purges_old_notifications(async_session_maker, monkeypatch):
    monkeypatch.setattr(jobs_run, "get_session_factory", lambda: async_session_maker)
    now = datetime.now(tz=timezone.utc)
    async with async_session_maker() as session:
        session.add(Notification(title="old", message="old", created_at=now - timedelta(days=10)))
        session.add(Notification(title="new", message="new", created_at=now - timedelta(days=1)))
        await session.commit()

    exit_code = await jobs_run.run(["--once", "--job", "notification-retention"])

    assert exit_code == 0
    async with async_session_maker() as session:
        assert await count_notifications(session) == 1


@pytest.mark.anyio
async def test_run_once_reports_failure_exit_code(monkeypatch):
    def _broken_factory():
        raise RuntimeError("no database")

    monkeypatch.setattr(jobs_run, "get_session_factory", lambda: _broken_factory)

    exit_code = await jobs_run.run(["--once"])

    assert exit_code == 1


@pytest.mark.anyio
async def test_run_flushes_tracing_on_exit(async_session_maker, monkeypatch):
    class FakeTracerProvider:
        def __init__(self) -> None:
            self.force_flush_called = 0
            self.shutdown_called = 0

        def force_flush(self) -> None:
            self.force_flush_called += 1

        def shutdown(self) -> None:
            self.shutdown_called += 1

    fake_provider = FakeTracerProvider()
    monkeypatch.setattr(tracing_module.trace, "get_tracer_provider", lambda: fake_provider)
    monkeypatch.setattr(jobs_run, "get_session_factory", lambda: async_session_maker)
    monkeypatch.setattr(tracing_module, "_TRACING_SHUTDOWN", False)

    await jobs_run.run(["--once"])

    assert fake_provider.force_flush_called == 1
    assert fake_provider.shutdown_called == 1


def test_unknown_job_is_rejected():
    with pytest.raises(SystemExit):
        jobs_run._build_parser().parse_args(["--job", "booking-reminders"])
