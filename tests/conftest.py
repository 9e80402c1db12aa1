from __future__ import annotations

import os
from collections.abc import Iterator
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite://")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from asfmonitor.database import Base, get_db  # noqa: E402
from asfmonitor.main import app  # noqa: E402
from asfmonitor.routes import get_now  # noqa: E402

SGT = ZoneInfo("Asia/Singapore")


class FixedClock:
    """Settable stand-in for the request clock."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def set(self, hour: int, minute: int = 0, day: int = 18, second: int = 0) -> None:
        self.now = datetime(2026, 10, day, hour, minute, second, tzinfo=SGT)


@pytest.fixture
def db_session() -> Iterator[Session]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 10, 18, 9, 0, tzinfo=SGT))


@pytest.fixture
def client(db_session: Session, clock: FixedClock) -> Iterator[TestClient]:
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_now] = lambda: clock.now
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
