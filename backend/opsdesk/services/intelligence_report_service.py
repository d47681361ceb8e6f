"""
Report store for Intelligence Desk summaries.

Reads the latest report for cache hits and appends new reports after each
successful generation. There is intentionally no update or delete API.
"""

import logging
from datetime import date
from typing import Any, Mapping, Optional, Union

from sqlalchemy.orm import Session

from opsdesk.insights.models import TaskInsights
from opsdesk.intelligence.summary import SummaryResult
from opsdesk.models.intelligence_report import IntelligenceReport, ReportType

logger = logging.getLogger(__name__)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value[:10])


class IntelligenceReportService:
    """Append-only access to the intelligence_reports table."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def get_latest(self) -> Optional[IntelligenceReport]:
        """Most recently created report, or None when nothing has been generated."""
        return (
            self.db.query(IntelligenceReport)
            .order_by(IntelligenceReport.created_at.desc())
            .limit(1)
            .first()
        )

    def record(
        self,
        report_type: ReportType,
        summary: SummaryResult,
        insights: Union[TaskInsights, Mapping[str, Any]],
    ) -> IntelligenceReport:
        """
        Insert one report row and flush it.

        The caller owns the transaction and must commit.
        """
        snapshot = insights.to_dict() if isinstance(insights, TaskInsights) else dict(insights)
        window = snapshot.get("window") or {}

        report = IntelligenceReport(
            report_type=report_type,
            summary=summary.content,
            range_start=_parse_date(window.get("recent_cutoff")),
            range_end=_parse_date(window.get("today")),
            model=summary.model,
            token_usage=summary.usage,
            insights_json=snapshot,
            data_pack=summary.data_pack,
        )
        self.db.add(report)
        self.db.flush()

        logger.info(
            "intelligence_report.recorded",
            extra={
                "report_id": report.id,
                "report_type": report_type.value,
                "model": summary.model,
                "range_start": window.get("recent_cutoff"),
                "range_end": window.get("today"),
            },
        )
        return report
