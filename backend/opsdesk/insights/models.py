"""
Task insights snapshot.

A TaskInsights value is rebuilt for every generation and is otherwise
treated as an opaque, JSON-serializable structure: it is packed into the
prompt, stored verbatim on the report row and returned to the dashboard.
Only `window.recent_cutoff` and `window.today` are read by the pipeline.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class InsightsWindow:
    """Date bounds of a snapshot, as ISO dates in the desk's time zone."""

    recent_days: int
    recent_cutoff: str
    due_soon_cutoff: str
    today: str

    def to_dict(self) -> dict:
        return {
            "recent_days": self.recent_days,
            "recent_cutoff": self.recent_cutoff,
            "due_soon_cutoff": self.due_soon_cutoff,
            "today": self.today,
        }


@dataclass
class TaskCounts:
    total: int = 0
    open: int = 0
    closed: int = 0
    dropped: int = 0
    blocked: int = 0
    on_hold: int = 0
    overdue: int = 0
    due_soon: int = 0
    updated_recent: int = 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "open": self.open,
            "closed": self.closed,
            "dropped": self.dropped,
            "blocked": self.blocked,
            "on_hold": self.on_hold,
            "overdue": self.overdue,
            "due_soon": self.due_soon,
            "updated_recent": self.updated_recent,
        }


@dataclass
class GroupLoad:
    """Workload of one team, assignee or project."""

    id: Optional[str]
    name: str
    total: int = 0
    open: int = 0
    blocked: int = 0
    overdue: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "total": self.total,
            "open": self.open,
            "blocked": self.blocked,
            "overdue": self.overdue,
        }


@dataclass
class TaskInsights:
    """Aggregated task signals handed to the summary pipeline."""

    generated_at: str
    window: InsightsWindow
    counts: TaskCounts = field(default_factory=TaskCounts)
    by_status: list[dict[str, Any]] = field(default_factory=list)
    by_priority: list[dict[str, Any]] = field(default_factory=list)
    by_team: list[GroupLoad] = field(default_factory=list)
    by_assignee: list[GroupLoad] = field(default_factory=list)
    by_project: list[GroupLoad] = field(default_factory=list)
    # Task summaries, blocker rankings and comment signals are plain dicts
    tasks: list[dict[str, Any]] = field(default_factory=list)
    blocked_tasks: list[dict[str, Any]] = field(default_factory=list)
    recent_comments: list[dict[str, Any]] = field(default_factory=list)
    truncated: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for prompt packing, storage and API responses."""
        return {
            "generated_at": self.generated_at,
            "window": self.window.to_dict(),
            "counts": self.counts.to_dict(),
            "by_status": list(self.by_status),
            "by_priority": list(self.by_priority),
            "by_team": [g.to_dict() for g in self.by_team],
            "by_assignee": [g.to_dict() for g in self.by_assignee],
            "by_project": [g.to_dict() for g in self.by_project],
            "tasks": list(self.tasks),
            "blocked_tasks": list(self.blocked_tasks),
            "recent_comments": list(self.recent_comments),
            "truncated": self.truncated,
        }
