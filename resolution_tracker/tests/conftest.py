"""
Shared fixtures: in-memory SQLite database, a frozen clock and sample data.
"""
import os
import tempfile

os.environ.setdefault(
    "RESOLUTION_TRACKER_LOG_DIR", tempfile.mkdtemp(prefix="resolution-tracker-logs-")
)

import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from resolution_tracker.database import Base, get_db
from resolution_tracker.models import Goal, User
from resolution_tracker.services.points_service import PointsService


class FrozenClock:
    """Callable clock that only moves when told to"""

    def __init__(self, current: datetime):
        self.current = current

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


def create_user(db_session, user_id: str = "user-1", **kwargs) -> User:
    """Helper to create a user with optional stats"""
    user = User(id=user_id, display_name=kwargs.pop("display_name", "Test User"), **kwargs)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def create_goal(
    db_session,
    user_id: str = "user-1",
    recurrence_type: str = "daily",
    **kwargs
) -> Goal:
    """Helper to create a goal directly in the database"""
    goal = Goal(
        user_id=user_id,
        title=kwargs.pop("title", f"Test {recurrence_type} goal"),
        theme_id=kwargs.pop("theme_id", "health"),
        recurrence_type=recurrence_type,
        points_per_completion=PointsService.get_base_points(recurrence_type),
        **kwargs
    )
    db_session.add(goal)
    db_session.commit()
    db_session.refresh(goal)
    return goal


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def now():
    """Wednesday mid-morning"""
    return datetime(2026, 1, 14, 10, 0, 0)


@pytest.fixture
def clock(now):
    return FrozenClock(now)


@pytest.fixture
def user(db_session):
    return create_user(db_session)


@pytest.fixture
def daily_goal(db_session, user):
    return create_goal(db_session, user.id, "daily")


@pytest.fixture
def weekly_goal(db_session, user):
    return create_goal(db_session, user.id, "weekly")


@pytest.fixture
def client(db_session):
    from fastapi.testclient import TestClient
    from resolution_tracker.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
