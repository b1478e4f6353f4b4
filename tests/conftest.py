"""
Shared pytest fixtures.

Uses a SQLite database so no Postgres is required for tests. Every table is
emptied after each test: the aggregator reads *all* onboarded profiles, so
date-window isolation alone is not enough here.
"""
from datetime import date, datetime, time, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.db.base import Base, get_db
from app.main import app
from app.models.daily_log import DailyLog
from app.models.profile import Profile

SQLITE_URL = "sqlite:///./test_insights.db"

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def add_profile(db):
    """Insert a profile; onboarding is complete unless stated otherwise."""
    def _add(
        user_id: str,
        stage: str | None = "Perimenopause",
        date_of_birth: str | None = "1978-06-15",
        onboarding_complete: bool = True,
    ) -> Profile:
        profile = Profile(
            user_id=user_id,
            stage=stage,
            date_of_birth=date_of_birth,
            onboarding_complete=onboarding_complete,
        )
        db.add(profile)
        db.commit()
        return profile
    return _add


@pytest.fixture()
def add_log(db):
    """Insert a daily log. `hour` orders same-day check-ins."""
    def _add(
        user_id: str,
        day: date,
        symptoms=None,
        hour: int = 8,
        commit: bool = True,
        **fields,
    ) -> DailyLog:
        log = DailyLog(
            user_id=user_id,
            date=day,
            symptoms_json=symptoms,
            logged_at=datetime.combine(day, time(hour=hour), tzinfo=timezone.utc),
            **fields,
        )
        db.add(log)
        if commit:
            db.commit()
        return log
    return _add
