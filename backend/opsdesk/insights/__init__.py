"""
Task insights for the Intelligence Desk.

Provides:
- TaskInsights: snapshot of task signals (window, counts, workloads, blockers, comments)
- TaskInsightsBuilder: aggregates the task tables into a snapshot
- pack_insights_for_prompt: deterministic, size-bounded prompt serialization
"""

from opsdesk.insights.builder import TaskInsightsBuilder
from opsdesk.insights.models import GroupLoad, InsightsWindow, TaskCounts, TaskInsights
from opsdesk.insights.prompt_pack import pack_insights_for_prompt

__all__ = [
    "GroupLoad",
    "InsightsWindow",
    "TaskCounts",
    "TaskInsights",
    "TaskInsightsBuilder",
    "pack_insights_for_prompt",
]
