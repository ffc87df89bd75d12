"""User repository - Database operations for users, their skills and dashboard stats"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import (
    ExchangeRequest,
    Review,
    ScheduledSession,
    SkillToTeach,
    User,
)


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def get_active_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()

    @staticmethod
    def username_taken(db: Session, username: str, exclude_user_id: int) -> bool:
        return (
            db.query(User.id)
            .filter(
                func.lower(User.username) == username.lower(),
                User.id != exclude_user_id,
            )
            .first()
            is not None
        )

    @staticmethod
    def email_taken(db: Session, email: str, exclude_user_id: int) -> bool:
        return (
            db.query(User.id)
            .filter(func.lower(User.email) == email.lower(), User.id != exclude_user_id)
            .first()
            is not None
        )

    @staticmethod
    def replace_skills(db: Session, user: User, model, skills: list) -> None:
        """Swap a user's teach or learn list. Later duplicates of a name win."""
        db.query(model).filter(model.user_id == user.id).delete(synchronize_session=False)
        db.flush()
        unique = {skill.name: skill for skill in skills}
        for skill in unique.values():
            db.add(model(user_id=user.id, name=skill.name, difficulty=skill.difficulty))
        db.flush()
        db.expire(user, ["skills_to_teach" if model is SkillToTeach else "skills_to_learn"])

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    @staticmethod
    def get_ratings(db: Session, user_id: int) -> list[int]:
        return [
            row.rating
            for row in db.query(Review.rating).filter(Review.reviewed_user_id == user_id).all()
        ]

    @staticmethod
    def get_latest_reviews(db: Session, user_id: int, limit: int = 10) -> list[Review]:
        return (
            db.query(Review)
            .filter(Review.reviewed_user_id == user_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .limit(limit)
            .all()
        )

    # ------------------------------------------------------------------
    # Exchange requests between two users
    # ------------------------------------------------------------------

    @staticmethod
    def get_requests_between(db: Session, user_a: int, user_b: int) -> list[ExchangeRequest]:
        """All exchange requests between two users, newest first"""
        return (
            db.query(ExchangeRequest)
            .filter(
                or_(
                    (ExchangeRequest.requester_id == user_a) & (ExchangeRequest.receiver_id == user_b),
                    (ExchangeRequest.requester_id == user_b) & (ExchangeRequest.receiver_id == user_a),
                )
            )
            .order_by(ExchangeRequest.created_at.desc(), ExchangeRequest.id.desc())
            .all()
        )

    # ------------------------------------------------------------------
    # Dashboard stats
    # ------------------------------------------------------------------

    @staticmethod
    def count_sessions(db: Session, user_id: int, status: str, upcoming_only: bool = False) -> int:
        query = db.query(func.count(ScheduledSession.id)).filter(
            or_(ScheduledSession.instructor_id == user_id, ScheduledSession.learner_id == user_id),
            ScheduledSession.status == status,
        )
        if upcoming_only:
            query = query.filter(ScheduledSession.scheduled_date > datetime.utcnow())
        return query.scalar() or 0

    @staticmethod
    def count_active_exchanges(db: Session, user_id: int) -> int:
        return (
            db.query(func.count(ExchangeRequest.id))
            .filter(
                or_(ExchangeRequest.requester_id == user_id, ExchangeRequest.receiver_id == user_id),
                ExchangeRequest.status == "accepted",
            )
            .scalar()
            or 0
        )

    @staticmethod
    def count_pending_received(db: Session, user_id: int) -> int:
        return (
            db.query(func.count(ExchangeRequest.id))
            .filter(ExchangeRequest.receiver_id == user_id, ExchangeRequest.status == "pending")
            .scalar()
            or 0
        )

    @staticmethod
    def count_skills(db: Session, model, user_id: int) -> int:
        return db.query(func.count(model.id)).filter(model.user_id == user_id).scalar() or 0
