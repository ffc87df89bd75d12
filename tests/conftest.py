import os

# Must be set before the app modules read their configuration
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-access-secret")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401
from app.database import Base, get_db
from app.main import app
from app.models import (
    ExchangeRequest,
    NotificationSettings,
    ScheduledSession,
    SessionBooking,
    SkillToLearn,
    SkillToTeach,
    User,
)
from app.rate_limiter import global_rate_limit, otp_rate_limit
from app.security_utils import create_token_pair, hash_secret
from app.services.google_meet_service import google_meet_service

# ============================================================================
# Test database: sqlite in-memory shared by every session through StaticPool
# ============================================================================
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

DEFAULT_PASSWORD = "Password123"

# Modules that import enqueue_notification directly
NOTIFICATION_SEAMS = (
    "app.domain.auth.service.enqueue_notification",
    "app.domain.users.service.enqueue_notification",
    "app.domain.reviews.service.enqueue_notification",
    "app.domain.exchange_requests.service.enqueue_notification",
    "app.domain.session_bookings.service.enqueue_notification",
)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


async def no_rate_limit():
    return None


@pytest.fixture(name="db")
def db_fixture():
    """Fresh schema per test"""
    Base.metadata.create_all(bind=test_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(autouse=True)
def no_redis():
    """Redis is never reachable in tests: the cache misses and the queue falls back"""
    with patch("app.cache.get_redis_client", side_effect=ConnectionError("no redis")), patch(
        "app.rate_limiter.get_redis_client", side_effect=ConnectionError("no redis")
    ):
        yield


@pytest.fixture(name="notifications")
def notifications_fixture():
    """One AsyncMock standing in for enqueue_notification everywhere"""
    mock = AsyncMock(return_value="job-1")
    patchers = [patch(target, new=mock) for target in NOTIFICATION_SEAMS]
    for patcher in patchers:
        patcher.start()
    yield mock
    for patcher in patchers:
        patcher.stop()


@pytest.fixture(name="mail")
def mail_fixture():
    with patch(
        "app.domain.auth.service.send_email_verification_otp", new_callable=AsyncMock
    ) as verification, patch(
        "app.domain.auth.service.send_password_reset_otp", new_callable=AsyncMock
    ) as reset, patch(
        "app.domain.auth.service.send_welcome_email", new_callable=AsyncMock
    ) as welcome:
        yield {"verification": verification, "reset": reset, "welcome": welcome}


@pytest.fixture(name="meet")
def meet_fixture():
    with patch.object(
        google_meet_service,
        "create_scheduled_meeting",
        new_callable=AsyncMock,
        return_value="https://meet.google.com/abc-defg-hij",
    ) as mock:
        yield mock


@pytest.fixture(name="conversations")
def conversations_fixture():
    with patch(
        "app.domain.exchange_requests.service.create_conversation",
        new_callable=AsyncMock,
        return_value={"conversationId": "1_2", "created": True},
    ) as mock:
        yield mock


@pytest.fixture(name="client")
def client_fixture(db, notifications, mail, meet, conversations):
    """Test client on the in-memory database with every outbound integration patched"""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[global_rate_limit] = no_rate_limit
    app.dependency_overrides[otp_rate_limit] = no_rate_limit

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# Factories
# ============================================================================


def make_user(
    db,
    email: str,
    first_name: str = "Test",
    last_name: str = "User",
    username: str = None,
    teach: tuple = (),
    learn: tuple = (),
    password: str = DEFAULT_PASSWORD,
    **fields,
) -> User:
    user = User(
        first_name=first_name,
        last_name=last_name,
        username=username or email.split("@")[0].replace(".", "_"),
        email=email,
        password=hash_secret(password),
        **fields,
    )
    user.skills_to_teach = [SkillToTeach(name=name, difficulty="intermediate") for name in teach]
    user.skills_to_learn = [SkillToLearn(name=name, difficulty="beginner") for name in learn]
    user.notification_settings = NotificationSettings()
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    tokens = create_token_pair(user.id, user.email)
    return {"Authorization": f"Bearer {tokens['accessToken']}"}


def make_exchange_request(db, requester, receiver, status="pending", teaching="Python", learning="Guitar"):
    exchange_request = ExchangeRequest(
        requester_id=requester.id,
        receiver_id=receiver.id,
        teaching_skill=teaching,
        learning_skill=learning,
        status=status,
    )
    db.add(exchange_request)
    db.commit()
    db.refresh(exchange_request)
    return exchange_request


def make_booking(db, exchange_request, proposer, recipient, status="pending", **fields) -> SessionBooking:
    fields.setdefault("skill", exchange_request.teaching_skill)
    booking = SessionBooking(
        exchange_request_id=exchange_request.id,
        proposer_id=proposer.id,
        recipient_id=recipient.id,
        status=status,
        **fields,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


def make_session(
    db, booking, scheduled_date=None, status="scheduled", duration=60, **fields
) -> ScheduledSession:
    session = ScheduledSession(
        session_booking_id=booking.id,
        exchange_request_id=booking.exchange_request_id,
        instructor_id=booking.proposer_id,
        learner_id=booking.recipient_id,
        skill=booking.skill,
        status=status,
        scheduled_date=scheduled_date or datetime.utcnow() + timedelta(days=1),
        duration=duration,
        **fields,
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    return session
