"""Session booking repository - Database operations for bookings and generated sessions"""

from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ...models import ExchangeRequest, ScheduledSession, SessionBooking


class SessionBookingRepository:
    """Repository for session booking database operations"""

    @staticmethod
    def get_exchange_request(db: Session, exchange_request_id: int) -> Optional[ExchangeRequest]:
        return db.query(ExchangeRequest).filter(ExchangeRequest.id == exchange_request_id).first()

    @staticmethod
    def bookings_exist(db: Session, exchange_request_id: int) -> bool:
        return (
            db.query(SessionBooking.id)
            .filter(SessionBooking.exchange_request_id == exchange_request_id)
            .first()
            is not None
        )

    @staticmethod
    def create_bookings(db: Session, bookings: list[SessionBooking]) -> list[SessionBooking]:
        db.add_all(bookings)
        db.commit()
        for booking in bookings:
            db.refresh(booking)
        return bookings

    @staticmethod
    def get_by_id(db: Session, booking_id: int) -> Optional[SessionBooking]:
        return db.query(SessionBooking).filter(SessionBooking.id == booking_id).first()

    @staticmethod
    def list_for_user(db: Session, user_id: int, offset: int, limit: int) -> tuple[list[SessionBooking], int]:
        """Bookings I proposed, plus bookings proposed to me once they leave draft"""
        query = db.query(SessionBooking).filter(
            or_(
                SessionBooking.proposer_id == user_id,
                and_(SessionBooking.recipient_id == user_id, SessionBooking.status != "draft"),
            )
        )
        total = query.count()
        items = (
            query.order_by(SessionBooking.created_at.desc(), SessionBooking.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return items, total

    @staticmethod
    def add_sessions(db: Session, sessions: list[ScheduledSession]) -> list[ScheduledSession]:
        db.add_all(sessions)
        db.commit()
        for session in sessions:
            db.refresh(session)
        return sessions
