"""
Database models for the Intelligence Desk backend.

Importing this package registers every table on Base.metadata.
"""

from opsdesk.models.base import TimestampMixin, generate_uuid, utcnow
from opsdesk.models.profile import Profile, UserRole
from opsdesk.models.task import (
    Project,
    TaskTeam,
    Task,
    TaskComment,
    TaskSubtask,
    TaskDependency,
    SubtaskDependency,
    TaskStatus,
    TaskPriority,
    TaskApprovalState,
    SubtaskStatus,
)
from opsdesk.models.intelligence_report import (
    IntelligenceReport,
    ReportType,
    ImmutableReportError,
)
from opsdesk.models.notification import Notification, NotificationType

__all__ = [
    "TimestampMixin",
    "generate_uuid",
    "utcnow",
    "Profile",
    "UserRole",
    "Project",
    "TaskTeam",
    "Task",
    "TaskComment",
    "TaskSubtask",
    "TaskDependency",
    "SubtaskDependency",
    "TaskStatus",
    "TaskPriority",
    "TaskApprovalState",
    "SubtaskStatus",
    "IntelligenceReport",
    "ReportType",
    "ImmutableReportError",
    "Notification",
    "NotificationType",
]
