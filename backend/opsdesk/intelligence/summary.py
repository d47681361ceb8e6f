"""
Intelligence Desk summary generation.

Builds the fixed summary prompts around a data pack, calls the chat
completion client and normalizes the reply into canonical JSON.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from opsdesk.config.settings import DEFAULT_MAX_PROMPT_CHARS, DEFAULT_SUMMARY_MAX_TOKENS
from opsdesk.insights.models import TaskInsights
from opsdesk.insights.prompt_pack import pack_insights_for_prompt
from opsdesk.intelligence.json_repair import normalize_summary_json
from opsdesk.intelligence.llm_client import ChatCompletionClient, ChatMessage

logger = logging.getLogger(__name__)

SUMMARY_TEMPERATURE = 0.2

SUMMARY_SYSTEM_PROMPT = " ".join([
    "You are Intelligence Desk, an executive operations analyst for a marketing organization.",
    "Use only the provided data pack. If data is missing, say you do not have it.",
    "Use task description snippets and latest comment snippets for context.",
    "Pay special attention to dependency summaries and blocked chains.",
    "Be concise, high-signal, and avoid filler.",
    "Prioritize blockers, risks, and urgent priorities.",
])

SUMMARY_USER_PROMPT = "\n".join([
    "Create a CMO summary report as a single JSON object with exactly these keys:",
    '- "headline": string, at most 90 characters',
    '- "snapshot": array of at most 3 short strings',
    '- "blockers": array of at most 3 items; each item is either a string or an object '
    '{"task": string, "reason": string, "dependency": string}',
    '- "priorities": array of at most 3 strings (P0/P1 and overdue items first)',
    '- "risks": array of at most 3 strings',
    '- "next_actions": array of at most 3 strings (what to follow up on)',
    '- "what_im_noticing": array of at most 3 strings (patterns across teams and people)',
    "Return only the JSON object. No markdown, no code fences, no commentary.",
])

CHAT_SYSTEM_PROMPT = " ".join([
    "You are Intelligence Desk, an executive operations assistant.",
    "Answer questions using only the provided data pack.",
    "If data is not available, say you do not have it.",
    "Be concise and actionable.",
])


def data_pack_message(data_pack: str) -> str:
    return f"DATA PACK (JSON):\n{data_pack}"


@dataclass
class SummaryResult:
    """Output of one summary generation."""

    content: str  # canonical JSON, or the raw reply when it could not be repaired
    model: str
    usage: Optional[dict[str, Any]]
    data_pack: str


class SummaryGenerator:
    """Turns a TaskInsights snapshot into a normalized summary."""

    def __init__(
        self,
        client: ChatCompletionClient,
        max_tokens: int = DEFAULT_SUMMARY_MAX_TOKENS,
        max_prompt_chars: int = DEFAULT_MAX_PROMPT_CHARS,
        temperature: float = SUMMARY_TEMPERATURE,
    ):
        self.client = client
        self.max_tokens = max_tokens
        self.max_prompt_chars = max_prompt_chars
        self.temperature = temperature

    def build_messages(self, data_pack: str) -> list[ChatMessage]:
        return [
            ChatMessage(role="system", content=SUMMARY_SYSTEM_PROMPT),
            ChatMessage(
                role="user",
                content=f"{SUMMARY_USER_PROMPT}\n\n{data_pack_message(data_pack)}",
            ),
        ]

    def generate(self, insights: TaskInsights) -> SummaryResult:
        """
        Generate a summary for `insights`.

        Completion errors propagate unchanged; unparseable replies do not.
        """
        data_pack = pack_insights_for_prompt(insights, max_chars=self.max_prompt_chars)

        reply = self.client.complete(
            self.build_messages(data_pack),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        content = normalize_summary_json(reply.content)
        if content is reply.content:
            logger.warning(
                "intelligence_summary.unparsed_reply",
                extra={"model": reply.model, "reply_chars": len(reply.content)},
            )

        return SummaryResult(
            content=content,
            model=reply.model,
            usage=reply.usage,
            data_pack=data_pack,
        )
