# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: In-app notifications, fan-out for other services plus the
caller-scoped inbox operations.
"""

from typing import Any, Dict, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from secons.core.config import settings
from secons.core.logging import get_logger
from secons.metrics.prometheus import NOTIFICATIONS_CREATED
from secons.repositories.notification_repository import NotificationRepository

logger = get_logger(__name__)

VALID_TYPES = ("chat", "announcement", "meeting", "system")


class NotificationService:
    def __init__(self, repo: NotificationRepository) -> None:
        self._repo = repo

    # ── Fan-out ──

    def notify(self, user_ids: Iterable[str], type_: str, title: str, body: str,
               link: Optional[str] = None) -> int:
        """Write one notification per recipient. Failures are logged, never raised."""
        recipients = list(user_ids)
        if not recipients:
            return 0
        try:
            written = self._repo.create_many(recipients, type_, title, body, link)
        except SQLAlchemyError as exc:
            logger.error("Failed to push %s notifications to %d users: %s",
                         type_, len(recipients), exc)
            return 0
        NOTIFICATIONS_CREATED.labels(type=type_).inc(written)
        logger.info("Notifications pushed: type=%s, recipients=%d", type_, written)
        return written

    # ── Inbox ──

    def list_for_user(self, uid: str) -> Dict[str, Any]:
        return {
            "notifications": self._repo.list_for_user(uid, settings.NOTIFICATION_LIST_LIMIT),
            "unread_count": self._repo.unread_count(uid),
        }

    def mark_all_read(self, uid: str) -> int:
        return self._repo.mark_all_read(uid)

    def clear_all(self, uid: str) -> int:
        return self._repo.clear(uid)

    def mark_read(self, notification_id: str, uid: str) -> None:
        if not self._repo.mark_read(notification_id, uid):
            raise KeyError(f"Notification {notification_id} not found")

    def delete(self, notification_id: str, uid: str) -> None:
        if not self._repo.delete(notification_id, uid):
            raise KeyError(f"Notification {notification_id} not found")
