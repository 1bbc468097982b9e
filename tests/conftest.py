"""Pytest fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from safecheck.core.clock import FixedClock
from safecheck.core.config import settings
from safecheck.core.deps import get_batch_runner, get_clock, get_session_factory
from safecheck.core.errors import GatewayDeliveryError
from safecheck.db.base import Base
from safecheck.db.session import get_db
from safecheck.main import app
from safecheck.models import AlertRecord, CheckInEvent, Subject, TrustedContact  # noqa: F401 - register for create_all
from safecheck.services.factory import build_batch_runner
from safecheck.services.state_store import SubjectStateStore

TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Monday noon UTC; 21:00 in Seoul, 07:00 in New York
T0 = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakePush:
    """NotificationGateway double that records every send."""

    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.fail_tokens: set[str] = set()
        self.error: Exception | None = None
        self.on_send = None

    def send(self, token, title, body, data=None, urgent=False):
        if self.on_send is not None:
            hook, self.on_send = self.on_send, None
            hook()
        if self.error is not None:
            raise self.error
        if token in self.fail_tokens:
            raise GatewayDeliveryError("push rejected: unregistered token")
        self.sent.append({"token": token, "title": title, "body": body, "data": data, "urgent": urgent})


class FakeSms:
    """AlertGateway double that records every send."""

    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.fail_numbers: set[str] = set()
        self.error: Exception | None = None
        self.on_send = None

    def send(self, phone_number, message):
        if self.on_send is not None:
            hook, self.on_send = self.on_send, None
            hook()
        self.sent.append({"to": phone_number, "body": message, "ok": False})
        if self.error is not None:
            raise self.error
        if phone_number in self.fail_numbers:
            raise GatewayDeliveryError("Twilio send failed (400): invalid number")
        self.sent[-1]["ok"] = True


@pytest.fixture
def setup_db():
    """Fresh tables for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def push():
    return FakePush()


@pytest.fixture
def sms():
    return FakeSms()


@pytest.fixture
def runner(setup_db, push, sms, clock):
    return build_batch_runner(TestingSessionLocal, notifications=push, alerts=sms, clock=clock, max_workers=1)


@pytest.fixture
def make_subject(setup_db):
    """Insert a subject (plus contacts) and return its id."""

    def _make(contacts=(), last_seen_hours_ago=0.0, now=T0, **fields):
        values = {
            "full_name": "Kim Minji",
            "timezone": "UTC",
            "push_token": "push-token-1",
            "inactivity_threshold_hours": 24,
            "grace_period_hours": 2,
            "reminder_frequency_hours": 4,
            "monitoring_enabled": True,
            "alert_status": "ok",
        }
        values.update(fields)
        values.setdefault("last_seen_at", now - timedelta(hours=last_seen_hours_ago))
        db = TestingSessionLocal()
        subject = Subject(**values)
        db.add(subject)
        db.flush()
        for i, phone in enumerate(contacts):
            db.add(TrustedContact(subject_id=subject.id, name=f"Contact {i}", phone_number=phone, country_code="KR"))
        db.commit()
        subject_id = subject.id
        db.close()
        return subject_id

    return _make


@pytest.fixture
def fetch_subject():
    """Return a function reading a subject row fresh from the database."""

    def _fetch(subject_id: int) -> Subject:
        db = TestingSessionLocal()
        try:
            subject = db.get(Subject, subject_id)
            db.expunge(subject)
            return subject
        finally:
            db.close()

    return _fetch


@pytest.fixture
def fetch_alerts():
    """Return a function listing a subject's alert records, oldest first."""

    def _fetch(subject_id: int) -> list[AlertRecord]:
        db = TestingSessionLocal()
        try:
            rows = db.query(AlertRecord).filter(AlertRecord.subject_id == subject_id).order_by(AlertRecord.id).all()
            for row in rows:
                db.expunge(row)
            return rows
        finally:
            db.close()

    return _fetch


@pytest.fixture
def auth_headers():
    """Bearer headers carrying a token as the auth service would issue it."""

    def _headers(subject_id: int) -> dict[str, str]:
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": str(subject_id), "iat": now, "exp": now + timedelta(hours=1)},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def client(setup_db, clock, runner):
    """Test client with overridden DB, clock and gateways."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_batch_runner] = lambda: runner
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def store(setup_db):
    return SubjectStateStore(TestingSessionLocal)


@pytest.fixture
def session_factory(setup_db):
    return TestingSessionLocal
