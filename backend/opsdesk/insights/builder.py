"""
Task insights builder.

Reads tasks and their surroundings (people, teams, projects, comments,
subtasks, dependency edges) and aggregates them into a TaskInsights
snapshot for the Intelligence Desk.

Date semantics, all evaluated against "today" in the desk's time zone:
- open:      status not closed/dropped
- overdue:   open and due before today
- due soon:  open and due within the next 7 days (inclusive)
- recent:    updated on or after today - recent_days
"""

import logging
import re
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.orm import Session

from opsdesk.config.settings import DEFAULT_RECENT_DAYS, DEFAULT_TASK_LIMIT, DEFAULT_TIMEZONE
from opsdesk.insights.models import GroupLoad, InsightsWindow, TaskCounts, TaskInsights
from opsdesk.models.profile import Profile
from opsdesk.models.task import (
    RESOLVED_STATUSES,
    STALLED_STATUSES,
    Project,
    SubtaskDependency,
    SubtaskStatus,
    Task,
    TaskComment,
    TaskDependency,
    TaskStatus,
    TaskSubtask,
    TaskTeam,
)

logger = logging.getLogger(__name__)

DUE_SOON_DAYS = 7
MAX_DEPENDENCIES_PER_TASK = 8
MAX_TOP_BLOCKED_SUBTASKS = 3
MAX_RECENT_COMMENTS = 12

SNIPPET_CHARS = 180
COMMENT_SNIPPET_CHARS = 220
REASON_LABEL_CHARS = 80

_WHITESPACE = re.compile(r"\s+")


def compact_text(value: Optional[str], max_len: int = SNIPPET_CHARS) -> Optional[str]:
    """Collapse whitespace and cap length with an ellipsis; blank -> None."""
    if not value:
        return None
    normalized = _WHITESPACE.sub(" ", value).strip()
    if not normalized:
        return None
    if len(normalized) > max_len:
        return f"{normalized[:max_len - 1]}…"
    return normalized


def short_id(value: str) -> str:
    return f"{value[:8]}…"


def today_in_zone(now: datetime, tz_name: str) -> date:
    """Calendar date of `now` in `tz_name`, falling back to UTC for unknown zones."""
    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("task_insights.unknown_timezone", extra={"timezone": tz_name})
        zone = timezone.utc
    return now.astimezone(zone).date()


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _unique(ids: Iterable[Optional[str]]) -> list[str]:
    return list(dict.fromkeys(i for i in ids if i))


class _NameMaps:
    """Display names for ids, with placeholders for unknown or empty ids."""

    def __init__(self, profiles: list[Profile], teams: list[TaskTeam], projects: list[Project]):
        self._profiles = {p.id: p.display_name for p in profiles}
        self._teams = {t.id: (t.name or "").strip() or t.id for t in teams}
        self._projects = {p.id: (p.name or "").strip() or p.id for p in projects}

    def assignee(self, user_id: Optional[str]) -> str:
        if not user_id:
            return "Unassigned"
        return self._profiles.get(user_id) or short_id(user_id)

    def team(self, team_id: Optional[str]) -> str:
        if not team_id:
            return "No team"
        return self._teams.get(team_id) or short_id(team_id)

    def project(self, project_id: Optional[str]) -> str:
        if not project_id:
            return "No project"
        return self._projects.get(project_id) or short_id(project_id)


class TaskInsightsBuilder:
    """
    Builds a TaskInsights snapshot from the task tables.

    Performs a fixed sequence of reads; it never writes.
    """

    def __init__(
        self,
        db_session: Session,
        timezone_name: str = DEFAULT_TIMEZONE,
        recent_days: int = DEFAULT_RECENT_DAYS,
        task_limit: int = DEFAULT_TASK_LIMIT,
    ):
        self.db = db_session
        self.timezone_name = timezone_name or DEFAULT_TIMEZONE
        self.recent_days = recent_days
        self.task_limit = task_limit

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _latest_comments(self, task_ids: list[str]) -> dict[str, TaskComment]:
        if not task_ids:
            return {}
        rows = (
            self.db.query(TaskComment)
            .filter(TaskComment.task_id.in_(task_ids))
            .order_by(TaskComment.created_at.desc())
            .all()
        )
        latest: dict[str, TaskComment] = {}
        for row in rows:
            latest.setdefault(row.task_id, row)
        return latest

    def _subtasks(self, column, task_ids: list[str]) -> list[TaskSubtask]:
        if not task_ids:
            return []
        return self.db.query(TaskSubtask).filter(column.in_(task_ids)).all()

    def _task_dependencies(self, task_ids: list[str]) -> list[TaskDependency]:
        if not task_ids:
            return []
        return (
            self.db.query(TaskDependency)
            .filter(TaskDependency.blocked_task_id.in_(task_ids))
            .all()
        )

    def _subtask_dependencies(self, subtask_ids: list[str]) -> list[SubtaskDependency]:
        if not subtask_ids:
            return []
        return (
            self.db.query(SubtaskDependency)
            .filter(SubtaskDependency.blocked_subtask_id.in_(subtask_ids))
            .all()
        )

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(self, now: Optional[datetime] = None) -> TaskInsights:
        """Aggregate the current task tables into a snapshot."""
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        tasks = self.db.query(Task).order_by(Task.created_at.asc(), Task.id.asc()).all()
        profiles = self.db.query(Profile).all()
        projects = self.db.query(Project).all()
        teams = self.db.query(TaskTeam).all()

        today = today_in_zone(now, self.timezone_name)
        due_soon = today + timedelta(days=DUE_SOON_DAYS)
        recent_cutoff = today - timedelta(days=self.recent_days)

        names = _NameMaps(profiles, teams, projects)

        by_recency = sorted(tasks, key=lambda t: _iso(t.updated_at) or "", reverse=True)
        truncated = len(by_recency) > self.task_limit
        detail_tasks = by_recency[: self.task_limit]
        blocked_tasks = [t for t in tasks if t.status in STALLED_STATUSES]

        focus_ids = _unique(t.id for t in detail_tasks + blocked_tasks)
        latest_comments = self._latest_comments(focus_ids)
        task_by_id = {t.id: t for t in tasks}

        own_subtasks = self._subtasks(TaskSubtask.task_id, focus_ids)
        linked_subtasks = self._subtasks(TaskSubtask.linked_task_id, focus_ids)
        subtask_by_id = {s.id: s for s in own_subtasks + linked_subtasks}

        subtasks_by_task: dict[str, list[TaskSubtask]] = {}
        for s in own_subtasks:
            subtasks_by_task.setdefault(s.task_id, []).append(s)

        linked_by_task: dict[str, list[TaskSubtask]] = {}
        for s in linked_subtasks:
            if s.linked_task_id:
                linked_by_task.setdefault(s.linked_task_id, []).append(s)

        task_deps_by_blocked: dict[str, list[TaskDependency]] = {}
        for d in self._task_dependencies(focus_ids):
            task_deps_by_blocked.setdefault(d.blocked_task_id, []).append(d)

        subtask_deps_by_blocked: dict[str, list[SubtaskDependency]] = {}
        for d in self._subtask_dependencies(list(subtask_by_id)):
            subtask_deps_by_blocked.setdefault(d.blocked_subtask_id, []).append(d)

        def is_overdue(t: Task) -> bool:
            return bool(t.is_open and t.due_at and t.due_at < today)

        def is_due_soon(t: Task) -> bool:
            return bool(t.is_open and t.due_at and today <= t.due_at <= due_soon)

        counts = TaskCounts(total=len(tasks))
        by_status: dict[str, int] = {}
        by_priority: dict[str, int] = {}
        by_team: dict[Optional[str], GroupLoad] = {}
        by_assignee: dict[Optional[str], GroupLoad] = {}
        by_project: dict[Optional[str], GroupLoad] = {}

        for t in tasks:
            status = t.status.value
            priority = t.priority.value.upper()
            by_status[status] = by_status.get(status, 0) + 1
            by_priority[priority] = by_priority.get(priority, 0) + 1

            overdue = is_overdue(t)
            if t.is_open:
                counts.open += 1
            if t.status == TaskStatus.CLOSED:
                counts.closed += 1
            if t.status == TaskStatus.DROPPED:
                counts.dropped += 1
            if t.status == TaskStatus.BLOCKED:
                counts.blocked += 1
            if t.status == TaskStatus.ON_HOLD:
                counts.on_hold += 1
            if overdue:
                counts.overdue += 1
            if is_due_soon(t):
                counts.due_soon += 1
            if t.updated_at and t.updated_at.date() >= recent_cutoff:
                counts.updated_recent += 1

            for groups, key, label in (
                (by_team, t.team_id, names.team),
                (by_assignee, t.assignee_id, names.assignee),
                (by_project, t.project_id, names.project),
            ):
                entry = groups.get(key)
                if entry is None:
                    entry = groups[key] = GroupLoad(id=key, name=label(key))
                entry.total += 1
                if t.is_open:
                    entry.open += 1
                if t.status in STALLED_STATUSES:
                    entry.blocked += 1
                if overdue:
                    entry.overdue += 1

        def blocker_items(deps: Iterable[SubtaskDependency]) -> list[dict]:
            items = []
            for d in deps:
                if d.blocker_task_id:
                    blocker = task_by_id.get(d.blocker_task_id)
                    if blocker is not None and blocker.status in RESOLVED_STATUSES:
                        continue
                    label = (
                        compact_text(d.reason, REASON_LABEL_CHARS)
                        or (blocker.title if blocker is not None else None)
                        or short_id(d.blocker_task_id)
                    )
                    items.append({"type": "task", "id": d.blocker_task_id, "label": label, "reason": d.reason})
                elif d.blocker_subtask_id:
                    blocker_sub = subtask_by_id.get(d.blocker_subtask_id)
                    if blocker_sub is not None and blocker_sub.status == SubtaskStatus.DONE:
                        continue
                    label = (
                        compact_text(d.reason, REASON_LABEL_CHARS)
                        or (blocker_sub.title if blocker_sub is not None else None)
                        or short_id(d.blocker_subtask_id)
                    )
                    items.append({"type": "subtask", "id": d.blocker_subtask_id, "label": label, "reason": d.reason})
            return items

        def dependency_summary(task_id: str) -> list[dict]:
            items = []
            for d in task_deps_by_blocked.get(task_id, []):
                blocker = task_by_id.get(d.blocker_task_id)
                if blocker is not None and blocker.status in RESOLVED_STATUSES:
                    continue
                label = (
                    compact_text(d.reason, REASON_LABEL_CHARS)
                    or (blocker.title if blocker is not None else None)
                    or short_id(d.blocker_task_id)
                )
                items.append({"type": "task", "id": d.blocker_task_id, "label": label, "reason": d.reason})

            for s in subtasks_by_task.get(task_id, []) + linked_by_task.get(task_id, []):
                items.extend(blocker_items(subtask_deps_by_blocked.get(s.id, [])))

            seen = set()
            unique_items = []
            for item in items:
                key = f"{item['type']}:{item['id'].lower()}"
                if key in seen:
                    continue
                seen.add(key)
                unique_items.append(item)
            return unique_items[:MAX_DEPENDENCIES_PER_TASK]

        def subtask_summary(task_id: str) -> Optional[dict]:
            rows = subtasks_by_task.get(task_id, [])
            if not rows:
                return None
            summary = {
                "total": len(rows),
                "not_done": 0,
                "done": 0,
                "blocked": 0,
                "on_hold": 0,
                "overdue": 0,
                "due_soon": 0,
                "blocked_by_dependencies": 0,
                "top_blocked": [],
            }
            for s in rows:
                summary[s.status.value] += 1
                if subtask_deps_by_blocked.get(s.id):
                    summary["blocked_by_dependencies"] += 1
                if (
                    s.status in (SubtaskStatus.BLOCKED, SubtaskStatus.ON_HOLD)
                    and len(summary["top_blocked"]) < MAX_TOP_BLOCKED_SUBTASKS
                ):
                    summary["top_blocked"].append(s.title or short_id(s.id))
                if s.due_at:
                    if s.due_at < today:
                        summary["overdue"] += 1
                    if today <= s.due_at <= due_soon:
                        summary["due_soon"] += 1
            return summary

        def task_summary(t: Task) -> dict:
            latest = latest_comments.get(t.id)
            return {
                "id": t.id,
                "title": t.title,
                "status": t.status.value,
                "priority": t.priority.value.upper(),
                "assignee": names.assignee(t.assignee_id),
                "team": names.team(t.team_id),
                "project": names.project(t.project_id),
                "due_at": _iso(t.due_at),
                "updated_at": _iso(t.updated_at),
                "description_snippet": compact_text(t.description),
                "latest_comment_snippet": compact_text(latest.body) if latest else None,
                "latest_comment_at": _iso(latest.created_at) if latest else None,
                "dependency_summary": dependency_summary(t.id),
                "subtask_summary": subtask_summary(t.id),
            }

        recent_comments = []
        for task_id, comment in latest_comments.items():
            task = task_by_id.get(task_id)
            if task is None or not comment.body:
                continue
            recent_comments.append({
                "task_id": task_id,
                "title": task.title,
                "created_at": _iso(comment.created_at),
                "snippet": compact_text(comment.body, COMMENT_SNIPPET_CHARS) or "",
                "assignee": names.assignee(task.assignee_id),
                "team": names.team(task.team_id),
                "project": names.project(task.project_id),
            })
        recent_comments.sort(key=lambda c: c["created_at"] or "", reverse=True)

        insights = TaskInsights(
            generated_at=now.astimezone(timezone.utc).isoformat(),
            window=InsightsWindow(
                recent_days=self.recent_days,
                recent_cutoff=recent_cutoff.isoformat(),
                due_soon_cutoff=due_soon.isoformat(),
                today=today.isoformat(),
            ),
            counts=counts,
            by_status=[{"status": s, "count": c} for s, c in by_status.items()],
            by_priority=[{"priority": p, "count": c} for p, c in by_priority.items()],
            by_team=list(by_team.values()),
            by_assignee=list(by_assignee.values()),
            by_project=list(by_project.values()),
            tasks=[task_summary(t) for t in detail_tasks],
            blocked_tasks=[task_summary(t) for t in blocked_tasks],
            recent_comments=recent_comments[:MAX_RECENT_COMMENTS],
            truncated=truncated,
        )

        logger.info(
            "task_insights.built",
            extra={
                "tasks_total": counts.total,
                "blocked": len(blocked_tasks),
                "truncated": truncated,
                "timezone": self.timezone_name,
            },
        )
        return insights
