from gym_admin.domain.notifications.service import (
    DeleteOlderThan,
    bind_delete_older_than,
    count_notifications,
    delete_notifications_older_than,
    insert_notification,
)

__all__ = [
    "DeleteOlderThan",
    "bind_delete_older_than",
    "count_notifications",
    "delete_notifications_older_than",
    "insert_notification",
]
