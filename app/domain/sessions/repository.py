"""Session repository - Database operations for scheduled sessions"""

from typing import Optional

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from ...models import ScheduledSession


def _participant_filter(user_id: int):
    return or_(ScheduledSession.instructor_id == user_id, ScheduledSession.learner_id == user_id)


class SessionRepository:
    """Repository for session database operations"""

    @staticmethod
    def get_by_id(db: Session, session_id: int) -> Optional[ScheduledSession]:
        return db.query(ScheduledSession).filter(ScheduledSession.id == session_id).first()

    @staticmethod
    def get_open_sessions(db: Session, user_id: Optional[int] = None) -> list[ScheduledSession]:
        """Sessions not yet completed, optionally limited to one participant"""
        query = db.query(ScheduledSession).filter(ScheduledSession.status != "completed")
        if user_id is not None:
            query = query.filter(_participant_filter(user_id))
        return query.all()

    @staticmethod
    def list_for_user(
        db: Session, user_id: int, offset: int, limit: int, status: Optional[str] = None
    ) -> tuple[list[ScheduledSession], int]:
        """Open sessions soonest first, then completed sessions most recent first"""
        query = db.query(ScheduledSession).filter(_participant_filter(user_id))
        if status:
            query = query.filter(ScheduledSession.status == status)

        is_completed = ScheduledSession.status == "completed"
        total = query.count()
        items = (
            query.order_by(
                case((is_completed, 1), else_=0),
                case((~is_completed, ScheduledSession.scheduled_date), else_=None),
                ScheduledSession.scheduled_date.desc(),
                ScheduledSession.id,
            )
            .offset(offset)
            .limit(limit)
            .all()
        )
        return items, total

    @staticmethod
    def count_by_status(db: Session, user_id: int) -> dict[str, int]:
        rows = (
            db.query(ScheduledSession.status, func.count(ScheduledSession.id))
            .filter(_participant_filter(user_id))
            .group_by(ScheduledSession.status)
            .all()
        )
        return {status: count for status, count in rows}

    @staticmethod
    def get_learner_sessions(db: Session, user_id: int) -> list[ScheduledSession]:
        return (
            db.query(ScheduledSession)
            .filter(ScheduledSession.learner_id == user_id)
            .order_by(ScheduledSession.scheduled_date, ScheduledSession.id)
            .all()
        )
