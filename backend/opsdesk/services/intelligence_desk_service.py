"""
Intelligence Desk orchestration.

Three flows share one pipeline (build insights -> pack -> summarize ->
store):

- get_summary(force):  manual path. Without force it only ever serves the
  latest stored report; a cache miss is a 404, never an implicit generation.
  With force it always generates and appends a `manual` report.
- run_scheduled():     cron path. Always generates and appends a
  `scheduled` report, in the time zone configured for the schedule.
- answer_question():   chat over a fresh data pack; nothing is stored.

Every step runs sequentially in the request. Nothing is retried; a failure
after the model call discards the generated text. Concurrent forced
refreshes are not deduplicated: each one appends its own row.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from opsdesk.config.settings import DeskSettings
from opsdesk.insights.builder import TaskInsightsBuilder
from opsdesk.insights.models import TaskInsights
from opsdesk.insights.prompt_pack import pack_insights_for_prompt
from opsdesk.intelligence.llm_client import ChatMessage, LLMClientError
from opsdesk.intelligence.summary import (
    CHAT_SYSTEM_PROMPT,
    SummaryGenerator,
    data_pack_message,
)
from opsdesk.models.intelligence_report import IntelligenceReport, ReportType
from opsdesk.platform.errors import NotFoundError, UpstreamError
from opsdesk.services.intelligence_report_service import IntelligenceReportService
from opsdesk.services.intelligence_sync_service import IntelligenceSyncService

logger = logging.getLogger(__name__)

CHAT_TEMPERATURE = 0.2
MAX_CHAT_HISTORY = 10
CHAT_ROLES = ("user", "assistant")


@dataclass
class SummaryResponse:
    cached: bool
    summary: str
    generated_at: Optional[str]
    report: dict[str, Any]
    insights: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "cached": self.cached,
            "summary": self.summary,
            "generated_at": self.generated_at,
            "report": self.report,
            "insights": self.insights,
        }


def sanitize_chat_history(history: Any) -> list[ChatMessage]:
    """Keep the last user/assistant turns that have non-empty string content."""
    if not isinstance(history, list):
        return []
    messages = []
    for item in history:
        if not isinstance(item, dict):
            continue
        role = item.get("role")
        content = item.get("content")
        if role not in CHAT_ROLES or not isinstance(content, str):
            continue
        content = content.strip()
        if content:
            messages.append(ChatMessage(role=role, content=content))
    return messages[-MAX_CHAT_HISTORY:]


class IntelligenceDeskService:
    """Cache-or-generate logic for Intelligence Desk reports."""

    def __init__(
        self,
        db_session: Session,
        generator: SummaryGenerator,
        settings: DeskSettings,
    ):
        self.db = db_session
        self.generator = generator
        self.settings = settings
        self.reports = IntelligenceReportService(db_session)
        self.sync = IntelligenceSyncService(db_session, settings.default_timezone)

    def _build_insights(self, timezone_name: str) -> TaskInsights:
        builder = TaskInsightsBuilder(
            self.db,
            timezone_name=timezone_name,
            recent_days=self.settings.recent_days,
            task_limit=self.settings.task_limit,
        )
        return builder.build()

    def _generate(self, report_type: ReportType) -> tuple[IntelligenceReport, TaskInsights]:
        """
        Run the full pipeline and persist one report.

        Raises:
            UpstreamError: database or model provider failure
        """
        try:
            insights = self._build_insights(self.sync.get_timezone())
            summary = self.generator.generate(insights)
            report = self.reports.record(report_type, summary, insights)
            self.db.commit()
        except LLMClientError as e:
            self.db.rollback()
            logger.error(
                "intelligence_summary.generation_failed",
                extra={"report_type": report_type.value, "error": str(e)},
            )
            raise UpstreamError(str(e) or "Failed to generate summary")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                "intelligence_summary.storage_failed",
                extra={"report_type": report_type.value, "error_type": type(e).__name__},
                exc_info=True,
            )
            raise UpstreamError("Failed to generate summary")

        logger.info(
            "intelligence_summary.generated",
            extra={
                "report_id": report.id,
                "report_type": report_type.value,
                "model": report.model,
            },
        )
        return report, insights

    def get_summary(self, force: bool = False) -> SummaryResponse:
        """
        Latest report, or a freshly generated one when `force` is set.

        Raises:
            NotFoundError: no report stored yet and `force` not set
            UpstreamError: database or model provider failure
        """
        if not force:
            try:
                latest = self.reports.get_latest()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error("intelligence_summary.cache_read_failed", extra={"error": str(e)})
                raise UpstreamError("Failed to load cached summary")

            if latest is None:
                raise NotFoundError("Summary", message="No cached summary yet")

            logger.info("intelligence_summary.cache_hit", extra={"report_id": latest.id})
            return SummaryResponse(
                cached=True,
                summary=latest.summary,
                generated_at=latest.created_at.isoformat() if latest.created_at else None,
                report=latest.to_dict(),
                insights=latest.insights_json or {},
            )

        report, insights = self._generate(ReportType.MANUAL)
        return SummaryResponse(
            cached=False,
            summary=report.summary,
            generated_at=report.created_at.isoformat() if report.created_at else insights.generated_at,
            report=report.to_dict(),
            insights=insights.to_dict(),
        )

    def run_scheduled(self) -> dict:
        """Unconditionally generate and store a scheduled report."""
        _, insights = self._generate(ReportType.SCHEDULED)
        return {"ok": True, "generated_at": insights.generated_at}

    def answer_question(self, question: str, history: Any = None) -> dict:
        """
        Answer a CMO question over a fresh data pack.

        Raises:
            UpstreamError: model provider failure
        """
        insights = self._build_insights(self.settings.default_timezone)
        data_pack = pack_insights_for_prompt(insights, max_chars=self.settings.max_prompt_chars)

        messages = [
            ChatMessage(role="system", content=CHAT_SYSTEM_PROMPT),
            ChatMessage(role="user", content=data_pack_message(data_pack)),
            *sanitize_chat_history(history),
            ChatMessage(role="user", content=question),
        ]

        try:
            reply = self.generator.client.complete(
                messages,
                temperature=CHAT_TEMPERATURE,
                max_tokens=self.settings.chat_max_tokens,
            )
        except LLMClientError as e:
            logger.error("intelligence_chat.failed", extra={"error": str(e)})
            raise UpstreamError(str(e) or "Failed to answer question")

        return {
            "reply": reply.content,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "model": reply.model,
        }
