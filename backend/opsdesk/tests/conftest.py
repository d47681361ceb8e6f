"""
Shared fixtures: in-memory SQLite with autoflush=False sessions (matching
production session settings) and a factory for seeding task data.
"""

import uuid
from datetime import date, datetime, timedelta, timezone

import jwt
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import opsdesk.models  # noqa: F401  registers every table
from opsdesk.config.settings import DeskSettings
from opsdesk.db_base import Base
from opsdesk.models import (
    Notification,
    NotificationType,
    Profile,
    Project,
    Task,
    TaskComment,
    TaskPriority,
    TaskStatus,
    TaskTeam,
    UserRole,
)

JWT_SECRET = "test-jwt-secret-with-at-least-32-bytes!"
CRON_SECRET = "cron-secret-123"


@pytest.fixture
def engine():
    """Fresh in-memory database per test, shareable with TestClient threads."""
    eng = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db_session(engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def settings():
    return DeskSettings(
        database_url="sqlite:///:memory:",
        auth_jwt_secret=JWT_SECRET,
        openai_api_key="sk-test",
        cron_secret=CRON_SECRET,
        cron_target_url="https://desk.example.com/api/intelligence-desk/cron",
        default_timezone="UTC",
    )


class Seeder:
    """Creates committed rows; services may roll back, so nothing stays pending."""

    def __init__(self, session):
        self.session = session

    def _save(self, obj):
        self.session.add(obj)
        self.session.commit()
        return obj

    def profile(self, role=UserRole.MEMBER, full_name=None, **kwargs):
        return self._save(Profile(
            id=kwargs.pop("id", str(uuid.uuid4())),
            role=role,
            full_name=full_name,
            **kwargs,
        ))

    def team(self, name="Brand"):
        return self._save(TaskTeam(id=str(uuid.uuid4()), name=name))

    def project(self, name="Launch"):
        return self._save(Project(id=str(uuid.uuid4()), name=name))

    def task(
        self,
        title="Task",
        status=TaskStatus.QUEUED,
        priority=TaskPriority.P2,
        due_at=None,
        updated_at=None,
        **kwargs,
    ):
        stamp = updated_at or datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)
        return self._save(Task(
            id=kwargs.pop("id", str(uuid.uuid4())),
            title=title,
            status=status,
            priority=priority,
            due_at=due_at,
            created_at=kwargs.pop("created_at", stamp),
            updated_at=stamp,
            **kwargs,
        ))

    def comment(self, task, body, created_at=None):
        return self._save(TaskComment(
            id=str(uuid.uuid4()),
            task_id=task.id,
            body=body,
            created_at=created_at or datetime(2026, 3, 10, 10, 0, tzinfo=timezone.utc),
        ))

    def notification(self, user_id, title="Assigned", created_at=None, read_at=None,
                     type=NotificationType.TASK_ASSIGNED):
        return self._save(Notification(
            id=str(uuid.uuid4()),
            user_id=user_id,
            type=type,
            title=title,
            created_at=created_at or datetime.now(timezone.utc),
            read_at=read_at,
        ))


@pytest.fixture
def seed(db_session):
    return Seeder(db_session)


@pytest.fixture
def today():
    return date(2026, 3, 15)


@pytest.fixture
def now():
    """Fixed clock matching `today` in UTC."""
    return datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def auth_headers(settings):
    """Authorization headers carrying a valid session token for `user_id`."""

    def _headers(user_id: str) -> dict:
        token = jwt.encode(
            {
                "sub": user_id,
                "aud": settings.auth_jwt_audience,
                "exp": datetime.now(timezone.utc) + timedelta(hours=1),
            },
            settings.auth_jwt_secret,
            algorithm="HS256",
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
