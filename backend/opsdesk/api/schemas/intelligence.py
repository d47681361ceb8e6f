"""
Pydantic schemas for the Intelligence Desk API.

Request bodies for chat and schedule updates are parsed by hand in the
routes so that malformed JSON maps to a 400 rather than a 422.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ReportMetadata(BaseModel):
    """Stored report fields returned alongside a summary."""

    id: Optional[str] = Field(None, description="Report identifier")
    report_type: Optional[str] = Field(None, description="scheduled or manual")
    summary: Optional[str] = Field(None, description="Normalized JSON summary or raw model text")
    created_at: Optional[str] = Field(None, description="When the report was stored")
    range_start: Optional[str] = Field(None, description="Start of the recent-activity window")
    range_end: Optional[str] = Field(None, description="Last day covered by the report")
    model: Optional[str] = Field(None, description="Model that produced the summary")


class SummaryResponse(BaseModel):
    """Response model for GET /api/intelligence-desk/summary."""

    cached: bool = Field(..., description="True when served from the latest stored report")
    summary: str = Field(..., description="JSON summary; may be raw text if the model reply was not JSON")
    generated_at: Optional[str] = Field(None, description="When the summary was generated")
    report: ReportMetadata = Field(..., description="Report metadata")
    insights: Dict[str, Any] = Field(default_factory=dict, description="Task insights snapshot")


class CronResponse(BaseModel):
    """Response model for GET /api/intelligence-desk/cron."""

    ok: bool = Field(..., description="Whether a scheduled report was stored")
    generated_at: Optional[str] = Field(None, description="Snapshot generation time")


class ChatResponse(BaseModel):
    """Response model for POST /api/intelligence-desk/chat."""

    reply: str = Field(..., description="Assistant answer")
    generated_at: str = Field(..., description="When the answer was produced")
    model: str = Field(..., description="Model that produced the answer")


class SyncSettingsResponse(BaseModel):
    """Response model for the scheduled generation settings."""

    timezone: str = Field(..., description="IANA time zone of the schedule")
    sync_time: str = Field(..., description="Daily generation time as HH:MM, or empty")
    schedule_utc: Optional[str] = Field(None, description="Cron expression in UTC")
    jobname: Optional[str] = Field(None, description="Scheduler job name")
    updated_at: Optional[str] = Field(None, description="Last settings change")


class SyncSettingsUpdateResponse(SyncSettingsResponse):
    ok: bool = Field(True, description="Whether the schedule was updated")
