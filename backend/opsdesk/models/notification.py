"""
Notification model for the in-app feed.

Notifications are user-scoped and created by task workflow triggers in the
database (assignment, approval requests, mentions). This backend lists them,
marks them read and clears old ones.
"""

import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, String, Text

from opsdesk.db_base import Base
from opsdesk.models.base import generate_uuid, utcnow


class NotificationType(str, enum.Enum):
    """Task workflow events that produce a notification."""

    TASK_ASSIGNED = "task_assigned"
    TASK_APPROVAL_REQUESTED = "task_approval_requested"
    TASK_APPROVED = "task_approved"
    SUBTASK_ASSIGNED = "subtask_assigned"
    SUBTASK_NUDGE = "subtask_nudge"
    COMMENT_MENTION = "comment_mention"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(255), primary_key=True, default=generate_uuid)
    user_id = Column(String(255), ForeignKey("profiles.id"), nullable=False)
    type = Column(
        Enum(NotificationType, values_callable=lambda enum_cls: [e.value for e in enum_cls]),
        nullable=False,
    )
    title = Column(String(500), nullable=False)
    body = Column(Text, nullable=True)
    related_task_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    read_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_notifications_user_created", "user_id", "created_at"),
    )

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    def mark_read(self, when) -> None:
        if self.read_at is None:
            self.read_at = when

    def __repr__(self) -> str:
        return (
            f"<Notification(id={self.id}, user_id={self.user_id}, "
            f"type={self.type.value if self.type else None})>"
        )
