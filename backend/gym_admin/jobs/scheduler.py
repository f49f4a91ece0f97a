import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from enum import Enum

from gym_admin.domain.notifications import DeleteOlderThan
from gym_admin.domain.retention import DeletionOutcome, RetentionPolicy
from gym_admin.infra.metrics import metrics
from gym_admin.jobs.notification_retention import JOB_NAME, run_cleanup_cycle

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Sleeper = Callable[[float], Awaitable[None]]


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


def _local_now() -> datetime:
    return datetime.now()


class RetentionScheduler:
    """Fires the notification purge on the policy's cron schedule.

    The schedule is evaluated in server local time. One cycle runs at a time;
    a tick that arrives while a cycle is in flight waits for it to finish.
    ``stop()`` cancels the timer and leaves the scheduler in a terminal state.
    """

    def __init__(
        self,
        delete_older_than: DeleteOlderThan,
        policy: RetentionPolicy,
        *,
        clock: Clock | None = None,
        sleep: Sleeper | None = None,
        job_name: str = JOB_NAME,
    ) -> None:
        self._delete_older_than = delete_older_than
        self.policy = policy
        self.job_name = job_name
        self._clock = clock or _local_now
        self._sleep = sleep or asyncio.sleep
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None
        self._state = SchedulerState.IDLE
        self.next_run_at: datetime | None = None
        self.last_outcome: DeletionOutcome | None = None
        self.cycles_completed = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_started(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self._state == SchedulerState.STOPPED:
            raise RuntimeError("retention scheduler has been stopped")
        if self._task is not None and not self._task.done():
            logger.warning("retention_scheduler_already_started", extra={"extra": {"job": self.job_name}})
            return self._task
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run_forever(), name=f"{self.job_name}-scheduler")
        logger.info(
            "retention_scheduler_started",
            extra={
                "extra": {
                    "job": self.job_name,
                    "schedule": self.policy.schedule,
                    "max_age_days": self.policy.max_age_days,
                }
            },
        )
        return self._task

    async def run_once(self, *, now: datetime | None = None) -> DeletionOutcome:
        async with self._lock:
            if self._state != SchedulerState.STOPPED:
                self._state = SchedulerState.RUNNING
            try:
                outcome = await run_cleanup_cycle(self._delete_older_than, self.policy, now=now)
            finally:
                if self._state == SchedulerState.RUNNING:
                    self._state = SchedulerState.IDLE
            self.last_outcome = outcome
            self.cycles_completed += 1
            return outcome

    async def _run_forever(self) -> None:
        last_fired: datetime | None = None
        while True:
            current = self._clock()
            # a clock that wakes slightly early must not select the slot that just fired
            anchor = current if last_fired is None else max(current, last_fired)
            self.next_run_at = self.policy.next_run_after(anchor)
            delay = max((self.next_run_at - current).total_seconds(), 0.0)
            await self._sleep(delay)
            last_fired = self.next_run_at
            metrics.record_job_heartbeat(self.job_name, datetime.now(timezone.utc).timestamp())
            try:
                await self.run_once()
            except Exception:  # noqa: BLE001
                logger.exception("retention_scheduler_cycle_crashed", extra={"extra": {"job": self.job_name}})

    async def stop(self) -> None:
        self._state = SchedulerState.STOPPED
        task, self._task = self._task, None
        if task is None:
            return
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("retention_scheduler_stopped", extra={"extra": {"job": self.job_name}})
