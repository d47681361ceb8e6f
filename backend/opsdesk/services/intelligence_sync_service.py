"""
Intelligence Desk schedule settings.

The scheduled generation time lives in the database and is managed by two
stored procedures owned by the database (they also reschedule the pg_cron
job that calls the cron relay):

- get_intelligence_sync_settings()
- set_intelligence_sync_time(p_sync_time, p_timezone)

This service calls them and shapes their rows for the API.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from opsdesk.config.settings import DEFAULT_TIMEZONE
from opsdesk.platform.errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

SYNC_TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")
_TIME_PREFIX = re.compile(r"^(\d{2}):(\d{2})")


def normalize_time_for_input(value: Any) -> str:
    """'07:30:00' -> '07:30'; anything unusable -> ''."""
    if not isinstance(value, str):
        return ""
    match = _TIME_PREFIX.match(value)
    return f"{match.group(1)}:{match.group(2)}" if match else ""


def _iso_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


@dataclass
class SyncSettings:
    timezone: str
    sync_time: str
    schedule_utc: Optional[str] = None
    jobname: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(
        cls,
        row: Optional[Mapping[str, Any]],
        fallback_timezone: str = DEFAULT_TIMEZONE,
        fallback_sync_time: str = "",
    ) -> "SyncSettings":
        row = row or {}
        timezone_name = row.get("timezone")
        if isinstance(timezone_name, str):
            timezone_name = timezone_name.strip()
        sync_time = row.get("sync_time")
        if sync_time is not None and not isinstance(sync_time, str):
            # TIME columns come back as datetime.time
            sync_time = sync_time.strftime("%H:%M:%S")
        return cls(
            timezone=timezone_name or fallback_timezone,
            sync_time=normalize_time_for_input(sync_time) or fallback_sync_time,
            schedule_utc=row.get("schedule_utc"),
            jobname=row.get("jobname"),
            updated_at=_iso_or_none(row.get("updated_at")),
        )

    def to_dict(self) -> dict:
        return {
            "timezone": self.timezone,
            "sync_time": self.sync_time,
            "schedule_utc": self.schedule_utc,
            "jobname": self.jobname,
            "updated_at": self.updated_at,
        }


class IntelligenceSyncService:
    """Reads and updates the scheduled generation time."""

    def __init__(self, db_session: Session, default_timezone: str = DEFAULT_TIMEZONE):
        self.db = db_session
        self.default_timezone = default_timezone

    def _fetch_settings_row(self) -> Optional[Mapping[str, Any]]:
        return (
            self.db.execute(text("SELECT * FROM get_intelligence_sync_settings()"))
            .mappings()
            .first()
        )

    def get_settings(self) -> SyncSettings:
        """
        Raises:
            UpstreamError: the procedure call failed
        """
        try:
            row = self._fetch_settings_row()
        except SQLAlchemyError as e:
            logger.error("intelligence_sync.load_failed", extra={"error": str(e)})
            raise UpstreamError("Failed to load settings")
        return SyncSettings.from_row(row, fallback_timezone=self.default_timezone)

    def get_timezone(self) -> str:
        """
        Time zone for scheduled reports.

        Falls back to the default zone when the settings cannot be read, so a
        settings problem never blocks the scheduled run.
        """
        try:
            row = self._fetch_settings_row()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(
                "intelligence_sync.timezone_fallback",
                extra={"error": str(e), "timezone": self.default_timezone},
            )
            return self.default_timezone
        timezone_name = (row or {}).get("timezone")
        if isinstance(timezone_name, str) and timezone_name.strip():
            return timezone_name.strip()
        return self.default_timezone

    def set_sync_time(self, sync_time: Any, timezone_name: Any = None) -> SyncSettings:
        """
        Update the daily generation time ("HH:MM" in `timezone_name`).

        Raises:
            ValidationError: sync_time is not HH:MM
            UpstreamError: the procedure call failed
        """
        sync_time = sync_time.strip() if isinstance(sync_time, str) else ""
        timezone_name = (
            timezone_name.strip() if isinstance(timezone_name, str) else self.default_timezone
        )
        if not SYNC_TIME_PATTERN.match(sync_time):
            raise ValidationError("sync_time must be HH:MM")

        try:
            row = (
                self.db.execute(
                    text("SELECT * FROM set_intelligence_sync_time(:p_sync_time, :p_timezone)"),
                    {"p_sync_time": f"{sync_time}:00", "p_timezone": timezone_name},
                )
                .mappings()
                .first()
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("intelligence_sync.update_failed", extra={"error": str(e)})
            raise UpstreamError("Failed to update schedule")

        logger.info(
            "intelligence_sync.updated",
            extra={"sync_time": sync_time, "timezone": timezone_name},
        )
        return SyncSettings.from_row(
            row,
            fallback_timezone=timezone_name,
            fallback_sync_time=sync_time,
        )
