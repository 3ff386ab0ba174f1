"""
Shared fixtures: an in-memory database per test, a deterministic clock and a
notifier that records change events instead of broadcasting them.
"""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from coop_portal.database import models  # noqa: F401
from coop_portal.database.config.db import Base, get_db
from coop_portal.database.models.application import ApplicationStatus
from coop_portal.workflow.ledger import ApplicationStatusLedger


class FakeClock:
    """Advances one second per call so ordering by timestamp is stable."""

    def __init__(self, start=datetime(2025, 6, 2, 9, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def __call__(self, event, payload):
        self.events.append((event, payload))

    def names(self):
        return [event for event, _ in self.events]


# Ledger moves needed to reach each status from submitted
STATUS_PATHS = {
    ApplicationStatus.SUBMITTED: [],
    ApplicationStatus.UNDER_REVIEW: [ApplicationStatus.UNDER_REVIEW],
    ApplicationStatus.APPROVED: [ApplicationStatus.UNDER_REVIEW, ApplicationStatus.APPROVED],
    ApplicationStatus.REJECTED: [ApplicationStatus.UNDER_REVIEW, ApplicationStatus.REJECTED],
    ApplicationStatus.NEEDS_CHANGES: [ApplicationStatus.UNDER_REVIEW, ApplicationStatus.NEEDS_CHANGES],
}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def engine_kwargs(notifier, clock):
    """Keyword arguments shared by every engine component in a test."""
    return {"notify": notifier, "clock": clock}


@pytest.fixture
def ledger(db, engine_kwargs):
    return ApplicationStatusLedger(db, **engine_kwargs)


@pytest.fixture
def make_application(ledger):
    """Create an application and walk it to ``status`` through the ledger."""

    def _make(status=ApplicationStatus.SUBMITTED, required_approvals=0, student_id="6401234"):
        application = ledger.create(
            student_id,
            internship_id="INT-42",
            company_name="Siam Robotics",
            required_approvals=required_approvals,
        )
        for step in STATUS_PATHS[status]:
            application = ledger.transition(application.id, step, actor_id="staff-1")
        return application

    return _make


@pytest.fixture
def client(session_factory):
    from coop_portal.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
