"""
Notification feed service.

All operations are scoped to a single user: a caller can only read, mark or
clear their own notifications.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from opsdesk.models.notification import Notification

logger = logging.getLogger(__name__)

DEFAULT_FEED_LIMIT = 50


class NotificationService:
    """Reads and updates one user's notification feed."""

    def __init__(self, db_session: Session, user_id: str):
        if not user_id:
            raise ValueError("user_id is required")
        self.db = db_session
        self.user_id = user_id

    def _base_query(self):
        return self.db.query(Notification).filter(Notification.user_id == self.user_id)

    def list_notifications(
        self,
        limit: int = DEFAULT_FEED_LIMIT,
        unread_only: bool = False,
    ) -> list[Notification]:
        """Newest first."""
        query = self._base_query()
        if unread_only:
            query = query.filter(Notification.read_at.is_(None))
        return query.order_by(Notification.created_at.desc()).limit(limit).all()

    def get_unread_count(self) -> int:
        return self._base_query().filter(Notification.read_at.is_(None)).count()

    def mark_as_read(self, notification_id: str) -> bool:
        """
        Mark one notification read.

        Returns False when it does not exist or belongs to another user.
        """
        notification = self._base_query().filter(Notification.id == notification_id).first()
        if notification is None:
            return False
        notification.mark_read(datetime.now(timezone.utc))
        self.db.flush()
        return True

    def mark_all_as_read(self) -> int:
        now = datetime.now(timezone.utc)
        count = (
            self._base_query()
            .filter(Notification.read_at.is_(None))
            .update({Notification.read_at: now}, synchronize_session=False)
        )
        self.db.flush()
        return count

    def delete_before(self, before: datetime) -> int:
        """Clear the user's notifications created before `before`."""
        deleted = (
            self._base_query()
            .filter(Notification.created_at < before)
            .delete(synchronize_session=False)
        )
        self.db.flush()
        logger.info(
            "notifications.cleared",
            extra={"user_id": self.user_id, "deleted": deleted, "before": before.isoformat()},
        )
        return deleted

    def get_notification(self, notification_id: str) -> Optional[Notification]:
        return self._base_query().filter(Notification.id == notification_id).first()
