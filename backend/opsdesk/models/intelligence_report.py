"""
Intelligence report model.

Each row is a point-in-time materialization of one task insights snapshot,
the data pack sent to the model and the normalized model output.

Append-only: rows are never updated or deleted. The ORM refuses to flush a
modification or deletion of a persisted report.
"""

import enum

from sqlalchemy import JSON, Column, Date, DateTime, Enum, Index, String, Text, event, func

from opsdesk.db_base import Base
from opsdesk.models.base import generate_uuid, utcnow


class ReportType(str, enum.Enum):
    """How a report was triggered."""

    SCHEDULED = "scheduled"
    MANUAL = "manual"


class ImmutableReportError(Exception):
    """Raised when code attempts to modify or delete a stored report."""


class IntelligenceReport(Base):
    __tablename__ = "intelligence_reports"

    id = Column(String(255), primary_key=True, default=generate_uuid)
    report_type = Column(
        Enum(ReportType, values_callable=lambda enum_cls: [e.value for e in enum_cls]),
        nullable=False,
    )
    # Normalized JSON, or the raw model text when it could not be parsed
    summary = Column(Text, nullable=False)
    range_start = Column(Date, nullable=True)
    range_end = Column(Date, nullable=True)
    model = Column(String(255), nullable=True)
    token_usage = Column(JSON, nullable=True)
    insights_json = Column(JSON, nullable=True)
    data_pack = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_intelligence_reports_created_at", "created_at"),
    )

    def to_dict(self) -> dict:
        """Report metadata for API responses (snapshot and data pack excluded)."""
        return {
            "id": self.id,
            "report_type": self.report_type.value if self.report_type else None,
            "summary": self.summary,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "range_start": self.range_start.isoformat() if self.range_start else None,
            "range_end": self.range_end.isoformat() if self.range_end else None,
            "model": self.model,
        }

    def __repr__(self) -> str:
        return (
            f"<IntelligenceReport(id={self.id}, "
            f"report_type={self.report_type.value if self.report_type else None}, "
            f"created_at={self.created_at})>"
        )


@event.listens_for(IntelligenceReport, "before_update")
def _reject_report_update(mapper, connection, target):
    raise ImmutableReportError(f"Intelligence report {target.id} is immutable")


@event.listens_for(IntelligenceReport, "before_delete")
def _reject_report_delete(mapper, connection, target):
    raise ImmutableReportError(f"Intelligence report {target.id} cannot be deleted")
