import asyncio
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from gym_admin.domain.notifications import db_models as notification_db_models  # noqa: F401
from gym_admin.infra.db import Base
from gym_admin.infra.logging import RedactingJsonFormatter
from gym_admin.infra.metrics import configure_metrics
from gym_admin.jobs import lifecycle
from gym_admin.settings import settings


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )

    async def init_models() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(init_models())
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture
def async_session_maker(test_engine):
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest.fixture(autouse=True)
def restore_settings():
    original = settings.model_dump()
    yield
    for key, value in original.items():
        setattr(settings, key, value)


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if isinstance(handler.formatter, RedactingJsonFormatter):
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture(autouse=True)
def reset_job_state():
    lifecycle._SCHEDULER = None
    configure_metrics(False)
    yield
    lifecycle._SCHEDULER = None
    configure_metrics(False)
