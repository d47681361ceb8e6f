"""
Pydantic schemas for the Notifications API.

Request and response models for the per-user notification feed.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NotificationResponse(BaseModel):
    """Response model for a single notification."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Unique notification identifier")
    type: str = Field(..., description="Task workflow event that produced the notification")
    title: str = Field(..., description="Notification title")
    body: Optional[str] = Field(None, description="Notification body")
    related_task_id: Optional[str] = Field(None, description="Task the notification links to")
    created_at: datetime = Field(..., description="When notification was created")
    read_at: Optional[datetime] = Field(None, description="When notification was read")


class NotificationListResponse(BaseModel):
    """Response model for notification list."""

    notifications: List[NotificationResponse] = Field(..., description="List of notifications")
    unread_count: int = Field(..., description="Count of unread notifications")


class UnreadCountResponse(BaseModel):
    """Response model for unread count."""

    count: int = Field(..., description="Number of unread notifications")


class MarkReadResponse(BaseModel):
    """Response model for marking notification as read."""

    success: bool = Field(..., description="Whether operation succeeded")


class MarkAllReadResponse(BaseModel):
    """Response model for marking all notifications as read."""

    marked_count: int = Field(..., description="Number of notifications marked as read")


class ClearNotificationsResponse(BaseModel):
    """Response model for clearing old notifications."""

    deleted_count: int = Field(..., description="Number of notifications removed")
