from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gym_admin.domain.notifications.db_models import NOTIFICATION_TYPES, Notification

logger = logging.getLogger(__name__)

DeleteOlderThan = Callable[[datetime], Awaitable[int]]


def _sanitize_deleted_count(deleted: int | None) -> int:
    if deleted is None or deleted < 0:
        return 0
    return deleted


async def delete_notifications_older_than(session: AsyncSession, cutoff: datetime) -> int:
    """Delete notifications created strictly before ``cutoff`` and return how many went."""
    async with session.begin():
        result = await session.execute(sa.delete(Notification).where(Notification.created_at < cutoff))
    return _sanitize_deleted_count(result.rowcount)


def bind_delete_older_than(session_factory: async_sessionmaker[AsyncSession]) -> DeleteOlderThan:
    async def _delete(cutoff: datetime) -> int:
        async with session_factory() as session:
            return await delete_notifications_older_than(session, cutoff)

    return _delete


async def insert_notification(
    session: AsyncSession,
    title: str,
    message: str,
    notification_type: str = "info",
) -> Notification | None:
    """Store a notification. Failures are logged so the caller's flow continues."""
    if notification_type not in NOTIFICATION_TYPES:
        logger.warning("notification_type_unknown", extra={"extra": {"type": notification_type}})
        notification_type = "info"
    notification = Notification(title=title, message=message, type=notification_type)
    try:
        session.add(notification)
        await session.commit()
    except Exception as exc:  # noqa: BLE001
        await session.rollback()
        logger.error(
            "notification_insert_failed",
            extra={"extra": {"title": title, "reason": type(exc).__name__}},
        )
        return None
    return notification


async def count_notifications(session: AsyncSession) -> int:
    result = await session.scalar(sa.select(sa.func.count(Notification.id)))
    return int(result or 0)
