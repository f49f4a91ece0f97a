import logging
from datetime import datetime, timezone

from gym_admin.domain.notifications import DeleteOlderThan
from gym_admin.domain.retention import DeletionErr, DeletionOk, DeletionOutcome, RetentionPolicy
from gym_admin.infra.logging import job_log_context
from gym_admin.infra.metrics import metrics
from gym_admin.infra.tracing import get_tracer

JOB_NAME = "notification-retention"

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


async def purge_notifications(
    delete_older_than: DeleteOlderThan,
    policy: RetentionPolicy,
    *,
    now: datetime | None = None,
) -> DeletionOutcome:
    reference_time = now or datetime.now(timezone.utc)
    cutoff = policy.cutoff(reference_time)
    try:
        deleted = await delete_older_than(cutoff)
    except Exception as exc:  # noqa: BLE001
        return DeletionErr(reason=str(exc) or type(exc).__name__, error_type=type(exc).__name__, cutoff=cutoff)
    return DeletionOk(deleted_count=max(int(deleted or 0), 0), cutoff=cutoff)


def report_outcome(outcome: DeletionOutcome) -> None:
    now_ts = datetime.now(timezone.utc).timestamp()
    if isinstance(outcome, DeletionErr):
        logger.error(
            "notification_retention_failed",
            extra={
                "extra": {
                    "reason": outcome.reason,
                    "error_type": outcome.error_type,
                    "cutoff": outcome.cutoff.isoformat() if outcome.cutoff else None,
                }
            },
        )
        metrics.record_job_error(JOB_NAME, outcome.error_type)
        return

    metrics.record_job_success(JOB_NAME, now_ts)
    if outcome.deleted_count > 0:
        logger.info(
            "notification_retention_deleted",
            extra={
                "extra": {
                    "deleted": outcome.deleted_count,
                    "cutoff": outcome.cutoff.isoformat() if outcome.cutoff else None,
                }
            },
        )
        metrics.record_retention_deletion("notifications", outcome.deleted_count)


async def run_cleanup_cycle(
    delete_older_than: DeleteOlderThan,
    policy: RetentionPolicy,
    *,
    now: datetime | None = None,
) -> DeletionOutcome:
    """Run one purge and log its outcome. Never raises for deletion failures."""
    with job_log_context(JOB_NAME, max_age_days=policy.max_age_days):
        with tracer.start_as_current_span("notification_retention.cycle") as span:
            outcome = await purge_notifications(delete_older_than, policy, now=now)
            span.set_attribute("retention.status", "error" if isinstance(outcome, DeletionErr) else "success")
            if isinstance(outcome, DeletionOk):
                span.set_attribute("retention.deleted", outcome.deleted_count)
        report_outcome(outcome)
    return outcome
