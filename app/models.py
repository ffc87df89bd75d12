from datetime import datetime, timedelta

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

DIFFICULTY_LEVELS = ("beginner", "intermediate", "advanced")
EXCHANGE_REQUEST_STATUSES = ("pending", "accepted", "declined")
SESSION_BOOKING_STATUSES = ("draft", "pending", "accepted", "changes_requested", "changes_made")
SESSION_STATUSES = ("scheduled", "active", "completed")
DAYS_OF_WEEK = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
OTP_PURPOSES = ("email_verification", "password_reset")

NOTIFICATION_SETTING_KEYS = (
    "exchangeRequests",
    "sessionReminders",
    "messages",
    "reviewsAndRatings",
    "achievements",
)


def default_email_settings() -> dict:
    return {
        "exchangeRequests": False,
        "sessionReminders": True,
        "messages": False,
        "reviewsAndRatings": True,
        "achievements": True,
        "securityAlerts": True,
    }


def default_channel_settings() -> dict:
    return {key: True for key in NOTIFICATION_SETTING_KEYS}


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    username = Column(String(30), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # argon2 hash, never serialised
    about = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    website = Column(String(500), nullable=True)
    profile_picture = Column(String(500), nullable=True)
    weekly_availability = Column(Integer, default=0, nullable=False)  # Hours per week (0-168)
    skills = Column(JSON, default=list, nullable=False)
    interests = Column(JSON, default=list, nullable=False)
    language = Column(String(50), default="en", nullable=False)
    timezone = Column(String(64), default="Africa/Lagos", nullable=False)
    fcm_token = Column(String(500), nullable=True)  # Firebase Cloud Messaging device token
    deleted_at = Column(DateTime, nullable=True)  # Soft delete marker
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    skills_to_teach = relationship(
        "SkillToTeach", back_populates="user", cascade="all, delete-orphan"
    )
    skills_to_learn = relationship(
        "SkillToLearn", back_populates="user", cascade="all, delete-orphan"
    )
    notification_settings = relationship(
        "NotificationSettings", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def initials(self) -> str:
        return f"{self.first_name[:1]}{self.last_name[:1]}".upper()

    @property
    def location(self):
        if self.city and self.country:
            return f"{self.city}, {self.country}"
        return self.city or self.country or None


class SkillToTeach(Base):
    __tablename__ = "skills_to_teach"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_skill_to_teach_user_name"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    name = Column(String(100), nullable=False)
    difficulty = Column(String(20), nullable=False)  # beginner, intermediate, advanced
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="skills_to_teach")


class SkillToLearn(Base):
    __tablename__ = "skills_to_learn"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_skill_to_learn_user_name"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    name = Column(String(100), nullable=False)
    difficulty = Column(String(20), nullable=False)  # beginner, intermediate, advanced
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="skills_to_learn")


class ExchangeRequest(Base):
    __tablename__ = "exchange_requests"

    id = Column(Integer, primary_key=True, index=True)
    requester_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    receiver_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    message = Column(String(500), nullable=True)
    teaching_skill = Column(String(100), nullable=False)
    learning_skill = Column(String(100), nullable=False)
    status = Column(String(20), default="pending", index=True, nullable=False)  # pending, accepted, declined
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    requester = relationship("User", foreign_keys=[requester_id])
    receiver = relationship("User", foreign_keys=[receiver_id])
    session_bookings = relationship("SessionBooking", back_populates="exchange_request")


class SessionBooking(Base):
    __tablename__ = "session_bookings"

    id = Column(Integer, primary_key=True, index=True)
    exchange_request_id = Column(
        Integer, ForeignKey("exchange_requests.id"), index=True, nullable=False
    )
    proposer_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    recipient_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    skill = Column(String(100), nullable=False)
    # draft, pending, accepted, changes_requested, changes_made
    status = Column(String(20), default="draft", index=True, nullable=False)
    days_per_week = Column(Integer, default=1, nullable=False)
    days_of_week = Column(JSON, default=lambda: ["Monday"], nullable=False)
    start_time = Column(String(5), default="09:00", nullable=False)  # HH:MM, 24-hour
    duration = Column(Integer, default=60, nullable=False)  # Minutes
    total_sessions = Column(Integer, default=1, nullable=False)
    message = Column(String(500), nullable=True)
    version = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    exchange_request = relationship("ExchangeRequest", back_populates="session_bookings")
    proposer = relationship("User", foreign_keys=[proposer_id])
    recipient = relationship("User", foreign_keys=[recipient_id])
    sessions = relationship("ScheduledSession", back_populates="session_booking")


class ScheduledSession(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    session_booking_id = Column(
        Integer, ForeignKey("session_bookings.id"), index=True, nullable=False
    )
    exchange_request_id = Column(
        Integer, ForeignKey("exchange_requests.id"), index=True, nullable=False
    )
    instructor_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    learner_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    skill = Column(String(100), nullable=False)
    type = Column(String(20), default="teaching", nullable=False)  # learning, teaching
    status = Column(String(20), default="scheduled", index=True, nullable=False)
    scheduled_date = Column(DateTime, index=True, nullable=False)
    duration = Column(Integer, nullable=False)  # Minutes
    description = Column(String(500), nullable=True)
    location = Column(String(20), default="online", nullable=False)  # online, in_person
    meeting_link = Column(String(500), nullable=True)
    address = Column(String(200), nullable=True)
    completed_at = Column(DateTime, nullable=True)
    reminder_sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    session_booking = relationship("SessionBooking", back_populates="sessions")
    instructor = relationship("User", foreign_keys=[instructor_id])
    learner = relationship("User", foreign_keys=[learner_id])

    @property
    def ends_at(self) -> datetime:
        return self.scheduled_date + timedelta(minutes=self.duration)

    def refresh_status(self, now: datetime = None) -> str:
        """Derive scheduled/active from the clock. Completed is only set explicitly."""
        if self.status == "completed":
            return self.status
        now = now or datetime.utcnow()
        if now < self.scheduled_date:
            self.status = "scheduled"
        elif now < self.ends_at:
            self.status = "active"
        return self.status


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("reviewed_user_id", "reviewer_id", "skill", name="uq_review_user_skill"),
    )

    id = Column(Integer, primary_key=True, index=True)
    reviewed_user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    reviewer_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    skill = Column(String(100), nullable=False)
    rating = Column(Integer, nullable=False)  # 1-5
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    reviewed_user = relationship("User", foreign_keys=[reviewed_user_id])
    reviewer = relationship("User", foreign_keys=[reviewer_id])


class OTP(Base):
    __tablename__ = "otps"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), index=True, nullable=False)
    otp_hash = Column(String(255), nullable=False)  # argon2 hash of the code
    purpose = Column(String(30), default="email_verification", nullable=False)
    expires_at = Column(DateTime, nullable=False)
    verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class TokenBlacklist(Base):
    __tablename__ = "token_blacklist"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(1024), unique=True, index=True, nullable=False)
    expires_at = Column(DateTime, index=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class NotificationSettings(Base):
    __tablename__ = "notification_settings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    email = Column(JSON, default=default_email_settings, nullable=False)
    push = Column(JSON, default=default_channel_settings, nullable=False)
    in_app = Column(JSON, default=default_channel_settings, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="notification_settings")
