"""
Notifications API routes.

Provides endpoints for:
- Listing notifications
- Getting unread count
- Marking notifications as read
- Clearing old notifications

SECURITY:
- All routes require a valid session
- Users can only see their own notifications
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from opsdesk.api.dependencies.auth import get_current_user
from opsdesk.api.schemas.notifications import (
    ClearNotificationsResponse,
    MarkAllReadResponse,
    MarkReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from opsdesk.database.session import get_db_session
from opsdesk.models.notification import Notification
from opsdesk.platform.auth import SessionUser
from opsdesk.platform.errors import NotFoundError, ValidationError
from opsdesk.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


def _notification_to_response(notification: Notification) -> NotificationResponse:
    """Convert Notification model to response model."""
    return NotificationResponse(
        id=notification.id,
        type=notification.type.value if notification.type else "",
        title=notification.title,
        body=notification.body,
        related_task_id=notification.related_task_id,
        created_at=notification.created_at,
        read_at=notification.read_at,
    )


def _parse_before(value: Optional[str]) -> datetime:
    if not value or not value.strip():
        raise ValidationError("before is required")
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError("before must be an ISO 8601 timestamp")


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    user: SessionUser = Depends(get_current_user),
    db_session=Depends(get_db_session),
    limit: int = Query(50, ge=1, le=100, description="Maximum notifications to return"),
    unread_only: bool = Query(False, description="Only unread notifications"),
):
    """
    List notifications for the current user, newest first.

    SECURITY: Only returns notifications for the authenticated user.
    """
    service = NotificationService(db_session, user.user_id)
    notifications = service.list_notifications(limit=limit, unread_only=unread_only)

    return NotificationListResponse(
        notifications=[_notification_to_response(n) for n in notifications],
        unread_count=service.get_unread_count(),
    )


@router.get("/unread/count", response_model=UnreadCountResponse)
def get_unread_count(
    user: SessionUser = Depends(get_current_user),
    db_session=Depends(get_db_session),
):
    service = NotificationService(db_session, user.user_id)
    return UnreadCountResponse(count=service.get_unread_count())


@router.patch("/{notification_id}/read", response_model=MarkReadResponse)
def mark_as_read(
    notification_id: str,
    user: SessionUser = Depends(get_current_user),
    db_session=Depends(get_db_session),
):
    """
    Mark a notification as read.

    SECURITY: Another user's notification is reported as not found.
    """
    service = NotificationService(db_session, user.user_id)
    if not service.mark_as_read(notification_id):
        raise NotFoundError("Notification", notification_id)

    db_session.commit()

    return MarkReadResponse(success=True)


@router.post("/read-all", response_model=MarkAllReadResponse)
def mark_all_as_read(
    user: SessionUser = Depends(get_current_user),
    db_session=Depends(get_db_session),
):
    service = NotificationService(db_session, user.user_id)
    count = service.mark_all_as_read()

    db_session.commit()

    logger.info(
        "notifications.marked_all_read",
        extra={"user_id": user.user_id, "count": count},
    )

    return MarkAllReadResponse(marked_count=count)


@router.delete("", response_model=ClearNotificationsResponse)
def clear_notifications(
    before: Optional[str] = Query(None, description="Clear notifications created before this ISO timestamp"),
    user: SessionUser = Depends(get_current_user),
    db_session=Depends(get_db_session),
):
    service = NotificationService(db_session, user.user_id)
    deleted = service.delete_before(_parse_before(before))

    db_session.commit()

    return ClearNotificationsResponse(deleted_count=deleted)
