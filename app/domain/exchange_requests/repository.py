"""Exchange request repository - Database operations for exchange requests"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import ExchangeRequest, User


class ExchangeRequestRepository:
    """Repository for exchange request database operations"""

    @staticmethod
    def get_active_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()

    @staticmethod
    def get_by_id(db: Session, exchange_request_id: int) -> Optional[ExchangeRequest]:
        return db.query(ExchangeRequest).filter(ExchangeRequest.id == exchange_request_id).first()

    @staticmethod
    def get_pending_between(db: Session, requester_id: int, receiver_id: int) -> Optional[ExchangeRequest]:
        return (
            db.query(ExchangeRequest)
            .filter(
                ExchangeRequest.requester_id == requester_id,
                ExchangeRequest.receiver_id == receiver_id,
                ExchangeRequest.status == "pending",
            )
            .first()
        )

    @staticmethod
    def create(db: Session, **fields) -> ExchangeRequest:
        exchange_request = ExchangeRequest(**fields)
        db.add(exchange_request)
        db.commit()
        db.refresh(exchange_request)
        return exchange_request

    @staticmethod
    def list_for_user(
        db: Session, user_id: int, offset: int, limit: int, status: Optional[str] = None
    ) -> tuple[list[ExchangeRequest], int]:
        """Requests the user sent or received, newest first, with the total count"""
        query = db.query(ExchangeRequest).filter(
            or_(ExchangeRequest.requester_id == user_id, ExchangeRequest.receiver_id == user_id)
        )
        if status:
            query = query.filter(ExchangeRequest.status == status)

        total = query.count()
        items = (
            query.order_by(ExchangeRequest.created_at.desc(), ExchangeRequest.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return items, total
