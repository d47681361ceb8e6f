"""
Task tracking models.

Tasks belong to an optional team and project, carry subtasks and comments,
and can be blocked by other tasks or subtasks through dependency edges.
These tables are written by the task screens; this backend reads them to
build Intelligence Desk insights.
"""

import enum

from sqlalchemy import (
    Boolean, Column, Date, DateTime, Enum, ForeignKey, Index, Integer, String, Text,
)

from opsdesk.db_base import Base
from opsdesk.models.base import TimestampMixin, generate_uuid, utcnow


def _enum_values(enum_cls):
    return [e.value for e in enum_cls]


class TaskStatus(str, enum.Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    CLOSED = "closed"
    ON_HOLD = "on_hold"
    BLOCKED = "blocked"
    DROPPED = "dropped"


class TaskPriority(str, enum.Enum):
    P0 = "p0"
    P1 = "p1"
    P2 = "p2"
    P3 = "p3"


class TaskApprovalState(str, enum.Enum):
    NOT_REQUIRED = "not_required"
    PENDING = "pending"
    APPROVED = "approved"


class SubtaskStatus(str, enum.Enum):
    NOT_DONE = "not_done"
    DONE = "done"
    BLOCKED = "blocked"
    ON_HOLD = "on_hold"


# Statuses that no longer count as open work
CLOSED_STATUSES = frozenset({TaskStatus.CLOSED, TaskStatus.DROPPED})

# A blocker task in one of these statuses no longer blocks anything
RESOLVED_STATUSES = frozenset({TaskStatus.APPROVED, TaskStatus.CLOSED, TaskStatus.DROPPED})

STALLED_STATUSES = frozenset({TaskStatus.BLOCKED, TaskStatus.ON_HOLD})


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(255), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)


class TaskTeam(Base, TimestampMixin):
    __tablename__ = "task_teams"

    id = Column(String(255), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    ticket_prefix = Column(String(20), nullable=True)
    description = Column(Text, nullable=True)
    approver_user_id = Column(String(255), nullable=True)
    created_by = Column(String(255), nullable=True)


class Task(Base, TimestampMixin):
    __tablename__ = "tasks"

    id = Column(String(255), primary_key=True, default=generate_uuid)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(
        Enum(TaskPriority, values_callable=_enum_values),
        nullable=False,
        default=TaskPriority.P2,
    )
    status = Column(
        Enum(TaskStatus, values_callable=_enum_values),
        nullable=False,
        default=TaskStatus.QUEUED,
        index=True,
    )
    approval_state = Column(
        Enum(TaskApprovalState, values_callable=_enum_values),
        nullable=False,
        default=TaskApprovalState.NOT_REQUIRED,
    )
    approved_by = Column(String(255), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    team_id = Column(String(255), ForeignKey("task_teams.id"), nullable=True)
    approver_user_id = Column(String(255), nullable=True)
    assignee_id = Column(String(255), ForeignKey("profiles.id"), nullable=True)
    project_id = Column(String(255), ForeignKey("projects.id"), nullable=True)
    due_at = Column(Date, nullable=True)
    weight_tier = Column(String(20), nullable=True)
    base_weight = Column(Integer, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(String(255), nullable=True)

    __table_args__ = (
        Index("ix_tasks_updated_at", "updated_at"),
    )

    @property
    def is_open(self) -> bool:
        return self.status not in CLOSED_STATUSES


class TaskComment(Base):
    __tablename__ = "task_comments"

    id = Column(String(255), primary_key=True, default=generate_uuid)
    task_id = Column(String(255), ForeignKey("tasks.id"), nullable=False, index=True)
    author_id = Column(String(255), nullable=True)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class TaskSubtask(Base, TimestampMixin):
    __tablename__ = "task_subtasks"

    id = Column(String(255), primary_key=True, default=generate_uuid)
    task_id = Column(String(255), ForeignKey("tasks.id"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    status = Column(
        Enum(SubtaskStatus, values_callable=_enum_values),
        nullable=False,
        default=SubtaskStatus.NOT_DONE,
    )
    assignee_id = Column(String(255), nullable=True)
    due_at = Column(Date, nullable=True)
    # Subtask that mirrors another ticket; blockers on it also block that ticket
    linked_task_id = Column(String(255), ForeignKey("tasks.id"), nullable=True, index=True)


class TaskDependency(Base):
    __tablename__ = "task_dependencies"

    id = Column(String(255), primary_key=True, default=generate_uuid)
    blocker_task_id = Column(String(255), ForeignKey("tasks.id"), nullable=False)
    blocked_task_id = Column(String(255), ForeignKey("tasks.id"), nullable=False, index=True)
    reason = Column(Text, nullable=True)


class SubtaskDependency(Base):
    """A subtask blocked by either a task or another subtask (exactly one set)."""

    __tablename__ = "task_subtask_dependencies"

    id = Column(String(255), primary_key=True, default=generate_uuid)
    blocked_subtask_id = Column(
        String(255), ForeignKey("task_subtasks.id"), nullable=False, index=True
    )
    blocker_task_id = Column(String(255), ForeignKey("tasks.id"), nullable=True)
    blocker_subtask_id = Column(String(255), ForeignKey("task_subtasks.id"), nullable=True)
    reason = Column(Text, nullable=True)
