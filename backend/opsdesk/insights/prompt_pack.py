"""
Data pack serialization.

Turns a TaskInsights snapshot into the compact JSON text embedded in LLM
prompts. Output is deterministic for a given snapshot and bounded in size.
"""

import json
from typing import Any, Mapping, Union

from opsdesk.config.settings import DEFAULT_MAX_PROMPT_CHARS
from opsdesk.insights.models import TaskInsights

TRUNCATION_MARKER = "…(truncated)"


def pack_insights_for_prompt(
    insights: Union[TaskInsights, Mapping[str, Any]],
    max_chars: int = DEFAULT_MAX_PROMPT_CHARS,
) -> str:
    """
    Serialize insights for a prompt.

    Structure is passed through as-is; absent fields stay absent. Payloads
    longer than max_chars are cut and suffixed with a truncation marker.
    """
    data = insights.to_dict() if isinstance(insights, TaskInsights) else dict(insights)
    payload = json.dumps(data, separators=(",", ":"), ensure_ascii=False, default=str)
    if len(payload) <= max_chars:
        return payload
    return f"{payload[:max_chars]}{TRUNCATION_MARKER}"
