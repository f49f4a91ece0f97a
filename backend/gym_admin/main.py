import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from gym_admin.infra.db import check_connection, dispose_engine, get_engine, get_session_factory
from gym_admin.infra.logging import configure_logging
from gym_admin.infra.metrics import configure_metrics
from gym_admin.infra.tracing import (
    configure_tracing,
    instrument_fastapi,
    instrument_sqlalchemy,
    shutdown_tracing,
)
from gym_admin.jobs.lifecycle import register_jobs, shutdown_jobs
from gym_admin.settings import settings

logger = logging.getLogger(__name__)


def create_app(app_settings) -> FastAPI:
    configure_logging()
    metrics_client = configure_metrics(app_settings.metrics_enabled, service_name=app_settings.app_name)
    if app_settings.tracing_enabled:
        configure_tracing(
            service_name=app_settings.app_name,
            endpoint=app_settings.otel_exporter_endpoint,
            testing=app_settings.testing,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.app_settings = getattr(app.state, "app_settings", app_settings)
        app.state.metrics = getattr(app.state, "metrics", None) or metrics_client
        app.state.db_session_factory = getattr(app.state, "db_session_factory", None) or get_session_factory()
        if app_settings.tracing_enabled:
            instrument_sqlalchemy(get_engine())
        app.state.db_ready = await check_connection(app.state.db_session_factory)
        app.state.retention_scheduler = register_jobs(
            app.state.app_settings, session_factory=app.state.db_session_factory
        )
        logger.info(
            "app_started",
            extra={
                "extra": {
                    "jobs_registered": app.state.retention_scheduler is not None,
                    "db_ready": app.state.db_ready,
                }
            },
        )
        try:
            yield
        finally:
            await shutdown_jobs()
            app.state.retention_scheduler = None
            await dispose_engine()
            if app_settings.tracing_enabled:
                shutdown_tracing()

    app = FastAPI(title="Gym Admin", version="1.0.0", lifespan=lifespan)
    if app_settings.tracing_enabled:
        instrument_fastapi(app)
    return app


app = create_app(settings)
