"""Tests for the per-user notification feed on SQLite."""

from datetime import datetime, timedelta, timezone

import pytest

from opsdesk.models import Notification
from opsdesk.services.notification_service import NotificationService


@pytest.fixture
def user(seed):
    return seed.profile(full_name="Sara")


@pytest.fixture
def other_user(seed):
    return seed.profile(full_name="Omar")


class TestNotificationService:

    def test_user_id_required(self, db_session):
        with pytest.raises(ValueError):
            NotificationService(db_session, "")

    def test_list_is_scoped_and_newest_first(self, db_session, seed, user, other_user):
        base = datetime(2026, 3, 10, tzinfo=timezone.utc)
        seed.notification(user.id, "older", created_at=base)
        seed.notification(user.id, "newer", created_at=base + timedelta(hours=1))
        seed.notification(other_user.id, "not mine", created_at=base)

        items = NotificationService(db_session, user.id).list_notifications()

        assert [n.title for n in items] == ["newer", "older"]

    def test_unread_only_and_count(self, db_session, seed, user):
        seed.notification(user.id, "read", read_at=datetime.now(timezone.utc))
        seed.notification(user.id, "unread")
        service = NotificationService(db_session, user.id)

        assert [n.title for n in service.list_notifications(unread_only=True)] == ["unread"]
        assert service.get_unread_count() == 1

    def test_mark_as_read(self, db_session, seed, user):
        notification = seed.notification(user.id)
        service = NotificationService(db_session, user.id)

        assert service.mark_as_read(notification.id) is True
        db_session.commit()

        assert service.get_notification(notification.id).is_read

    def test_cannot_mark_another_users_notification(self, db_session, seed, user, other_user):
        theirs = seed.notification(other_user.id)

        assert NotificationService(db_session, user.id).mark_as_read(theirs.id) is False
        assert NotificationService(db_session, other_user.id).get_unread_count() == 1

    def test_mark_all_as_read(self, db_session, seed, user, other_user):
        seed.notification(user.id)
        seed.notification(user.id)
        seed.notification(other_user.id)

        count = NotificationService(db_session, user.id).mark_all_as_read()
        db_session.commit()

        assert count == 2
        assert NotificationService(db_session, user.id).get_unread_count() == 0
        assert NotificationService(db_session, other_user.id).get_unread_count() == 1

    def test_delete_before(self, db_session, seed, user, other_user):
        cutoff = datetime(2026, 3, 10, tzinfo=timezone.utc)
        seed.notification(user.id, "old", created_at=cutoff - timedelta(days=1))
        seed.notification(user.id, "new", created_at=cutoff + timedelta(days=1))
        seed.notification(other_user.id, "theirs", created_at=cutoff - timedelta(days=1))

        deleted = NotificationService(db_session, user.id).delete_before(cutoff)
        db_session.commit()

        assert deleted == 1
        assert [n.title for n in db_session.query(Notification).order_by(Notification.title)] == [
            "new",
            "theirs",
        ]
