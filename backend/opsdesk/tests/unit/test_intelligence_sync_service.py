"""
Tests for IntelligenceSyncService.

The stored procedures live in Postgres, so the session is mocked and the
tests assert on the calls made and the rows shaped.
"""

from datetime import datetime, time, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from opsdesk.platform.errors import UpstreamError, ValidationError
from opsdesk.services.intelligence_sync_service import (
    IntelligenceSyncService,
    SyncSettings,
    normalize_time_for_input,
)


@pytest.fixture
def mock_db():
    return MagicMock()


def _set_row(mock_db, row):
    mock_db.execute.return_value.mappings.return_value.first.return_value = row


def _db_error():
    return OperationalError("SELECT", {}, Exception("function does not exist"))


class TestNormalizeTime:

    @pytest.mark.parametrize("value,expected", [
        ("07:30:00", "07:30"),
        ("23:05", "23:05"),
        ("7:30", ""),
        (None, ""),
        (730, ""),
    ])
    def test_normalize(self, value, expected):
        assert normalize_time_for_input(value) == expected


class TestGetSettings:

    def test_row_is_shaped(self, mock_db):
        _set_row(mock_db, {
            "timezone": " Asia/Dubai ",
            "sync_time": time(7, 30),
            "schedule_utc": "30 3 * * *",
            "jobname": "intelligence-desk-daily",
            "updated_at": datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc),
        })

        settings = IntelligenceSyncService(mock_db).get_settings()

        assert settings.to_dict() == {
            "timezone": "Asia/Dubai",
            "sync_time": "07:30",
            "schedule_utc": "30 3 * * *",
            "jobname": "intelligence-desk-daily",
            "updated_at": "2026-03-01T08:00:00+00:00",
        }

    def test_missing_row_uses_defaults(self, mock_db):
        _set_row(mock_db, None)

        settings = IntelligenceSyncService(mock_db, default_timezone="Asia/Karachi").get_settings()

        assert settings.timezone == "Asia/Karachi"
        assert settings.sync_time == ""
        assert settings.schedule_utc is None

    def test_procedure_failure(self, mock_db):
        mock_db.execute.side_effect = _db_error()

        with pytest.raises(UpstreamError, match="Failed to load settings"):
            IntelligenceSyncService(mock_db).get_settings()

    def test_procedure_name(self, mock_db):
        _set_row(mock_db, None)

        IntelligenceSyncService(mock_db).get_settings()

        statement = mock_db.execute.call_args[0][0]
        assert "get_intelligence_sync_settings()" in str(statement)


class TestGetTimezone:

    def test_configured_zone(self, mock_db):
        _set_row(mock_db, {"timezone": "Europe/London"})

        assert IntelligenceSyncService(mock_db).get_timezone() == "Europe/London"

    def test_failure_falls_back_and_rolls_back(self, mock_db):
        mock_db.execute.side_effect = _db_error()

        zone = IntelligenceSyncService(mock_db, default_timezone="UTC").get_timezone()

        assert zone == "UTC"
        mock_db.rollback.assert_called_once()

    def test_blank_zone_falls_back(self, mock_db):
        _set_row(mock_db, {"timezone": "  "})

        assert IntelligenceSyncService(mock_db, default_timezone="UTC").get_timezone() == "UTC"


class TestSetSyncTime:

    @pytest.mark.parametrize("sync_time", ["7:30", "07:30:00", "", None, 730, "ab:cd"])
    def test_invalid_time_is_rejected_before_any_call(self, mock_db, sync_time):
        with pytest.raises(ValidationError, match="sync_time must be HH:MM"):
            IntelligenceSyncService(mock_db).set_sync_time(sync_time)

        mock_db.execute.assert_not_called()

    def test_procedure_called_with_seconds(self, mock_db):
        _set_row(mock_db, {"timezone": "Asia/Dubai", "sync_time": "09:15:00",
                           "schedule_utc": "15 5 * * *", "jobname": "j", "updated_at": None})

        result = IntelligenceSyncService(mock_db).set_sync_time(" 09:15 ", "Asia/Dubai")

        params = mock_db.execute.call_args[0][1]
        assert params == {"p_sync_time": "09:15:00", "p_timezone": "Asia/Dubai"}
        mock_db.commit.assert_called_once()
        assert result.sync_time == "09:15"
        assert result.schedule_utc == "15 5 * * *"

    def test_default_zone_and_submitted_values_as_fallback(self, mock_db):
        _set_row(mock_db, None)

        result = IntelligenceSyncService(mock_db, default_timezone="Asia/Karachi").set_sync_time("06:00")

        assert mock_db.execute.call_args[0][1]["p_timezone"] == "Asia/Karachi"
        assert result == SyncSettings(timezone="Asia/Karachi", sync_time="06:00")

    def test_procedure_failure_rolls_back(self, mock_db):
        mock_db.execute.side_effect = _db_error()

        with pytest.raises(UpstreamError, match="Failed to update schedule"):
            IntelligenceSyncService(mock_db).set_sync_time("06:00")

        mock_db.rollback.assert_called_once()
        mock_db.commit.assert_not_called()
