import logging
import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    generate_latest,
)

logger = logging.getLogger(__name__)


class Metrics:
    def __init__(self, enabled: bool = False, service_name: str = "gym-admin") -> None:
        self._configure(enabled, service_name)

    def _configure(self, enabled: bool, service_name: str = "gym-admin") -> None:
        self.enabled = enabled
        self.service_name = service_name
        self.registry = CollectorRegistry(auto_describe=True)
        if not enabled:
            self.job_heartbeat = None
            self.job_last_success = None
            self.job_errors = None
            self.retention_deleted = None
            return

        self.job_heartbeat = Gauge(
            "job_last_heartbeat_timestamp",
            "Unix timestamp for the latest scheduler tick.",
            ["job"],
            registry=self.registry,
        )
        self.job_last_success = Gauge(
            "job_last_success_timestamp",
            "Unix timestamp for the latest successful job run.",
            ["job"],
            registry=self.registry,
        )
        self.job_errors = Counter(
            "job_errors_total",
            "Job execution errors by job and reason.",
            ["job", "reason"],
            registry=self.registry,
        )
        self.retention_deleted = Counter(
            "retention_deleted_total",
            "Records removed by retention jobs.",
            ["category"],
            registry=self.registry,
        )

    def record_job_heartbeat(self, job: str, timestamp: float | None = None) -> None:
        if not self.enabled or self.job_heartbeat is None:
            return
        ts = timestamp if timestamp is not None else time.time()
        self.job_heartbeat.labels(job=job).set(ts)

    def record_job_success(self, job: str, timestamp: float | None = None) -> None:
        if not self.enabled or self.job_last_success is None:
            return
        ts = timestamp if timestamp is not None else time.time()
        self.job_last_success.labels(job=job).set(ts)

    def record_job_error(self, job: str, reason: str) -> None:
        if not self.enabled or self.job_errors is None:
            return
        safe_reason = reason or "unknown"
        self.job_errors.labels(job=job, reason=safe_reason).inc()

    def record_retention_deletion(self, category: str, count: int) -> None:
        if not self.enabled or self.retention_deleted is None:
            return
        if count <= 0:
            return
        self.retention_deleted.labels(category=category).inc(count)

    def render(self) -> tuple[bytes, str]:
        if not self.enabled:
            return b"metrics_disabled 1\n", "text/plain; version=0.0.4"
        try:
            return generate_latest(self.registry), CONTENT_TYPE_LATEST
        except Exception:  # noqa: BLE001
            logger.exception("metrics_render_failed")
            return b"metrics_render_failed 1\n", "text/plain; version=0.0.4"


metrics = Metrics(enabled=False)


def configure_metrics(enabled: bool, service_name: str = "gym-admin") -> Metrics:
    metrics._configure(enabled, service_name)
    return metrics
