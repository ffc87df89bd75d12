"""Exchange request service - Business logic for sending, accepting and declining requests"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import invalidate_community_stats
from ...config import FRONTEND_URL
from ...email_templates import exchange_request_received_template
from ...models import ExchangeRequest, User
from ...schemas import PaginationParams
from ...services.contact_service import create_conversation
from ...services.notification_service import (
    NotificationPayload,
    NotificationTemplate,
    enqueue_notification,
    generate_action_url,
)
from ...shared.responses import pagination_block, user_summary
from ..session_bookings.service import SessionBookingService
from .repository import ExchangeRequestRepository
from .schemas import ExchangeRequestCreate

logger = logging.getLogger(__name__)


def serialize_exchange_request(exchange_request: ExchangeRequest) -> dict:
    return {
        "id": exchange_request.id,
        "requester": user_summary(exchange_request.requester),
        "receiver": user_summary(exchange_request.receiver),
        "message": exchange_request.message or None,
        "teachingSkill": exchange_request.teaching_skill,
        "learningSkill": exchange_request.learning_skill,
        "status": exchange_request.status,
        "createdAt": exchange_request.created_at.isoformat() if exchange_request.created_at else None,
    }


class ExchangeRequestService:
    """Service layer for exchange request business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ExchangeRequestRepository()

    async def create_exchange_request(self, requester: User, data: ExchangeRequestCreate) -> ExchangeRequest:
        if data.receiverId == requester.id:
            raise HTTPException(
                status_code=400, detail="Users cannot send exchange requests to themselves"
            )

        receiver = self.repo.get_active_user(self.db, data.receiverId)
        if not receiver:
            raise HTTPException(status_code=404, detail="Receiver user not found")

        if self.repo.get_pending_between(self.db, requester.id, receiver.id):
            raise HTTPException(
                status_code=400, detail="You already have a pending exchange request with this user"
            )

        exchange_request = self.repo.create(
            self.db,
            requester_id=requester.id,
            receiver_id=receiver.id,
            message=data.message,
            teaching_skill=data.teachingSkill,
            learning_skill=data.learningSkill,
            status="pending",
        )
        invalidate_community_stats()
        logger.info(
            f"🤝 Exchange request {exchange_request.id}: {requester.id} -> {receiver.id} "
            f"({data.teachingSkill} for {data.learningSkill})"
        )

        notification_data = {"exchangeRequestId": exchange_request.id}
        action_url = f"{FRONTEND_URL}{generate_action_url('exchange_request', notification_data)}"
        message = f"{requester.name} wants to teach you {data.teachingSkill} in exchange for {data.learningSkill}"
        await enqueue_notification(
            NotificationPayload(
                user_id=receiver.id,
                type="exchange_request",
                title="New Exchange Request",
                message=message,
                data=notification_data,
                template=NotificationTemplate(
                    email_subject="New Exchange Request - Skill Barter",
                    email_mjml=exchange_request_received_template(
                        receiver.first_name,
                        requester.name,
                        data.teachingSkill,
                        data.learningSkill,
                        data.message,
                        action_url,
                    ),
                    push_title="New Exchange Request 🤝",
                    push_body=message,
                    push_data={"type": "exchange_request", "exchangeRequestId": exchange_request.id},
                ),
            )
        )
        return exchange_request

    def get_exchange_requests(
        self, user: User, pagination: PaginationParams, status: Optional[str] = None
    ) -> dict:
        items, total = self.repo.list_for_user(
            self.db, user.id, pagination.offset, pagination.limit, status
        )
        return {
            "exchangeRequests": [serialize_exchange_request(item) for item in items],
            "pagination": pagination_block(pagination.page, pagination.limit, total),
        }

    def _get_pending_for_receiver(self, exchange_request_id: int, user: User, action: str) -> ExchangeRequest:
        exchange_request = self.repo.get_by_id(self.db, exchange_request_id)
        if not exchange_request:
            raise HTTPException(status_code=404, detail="Exchange request not found")
        if exchange_request.receiver_id != user.id:
            raise HTTPException(
                status_code=400, detail=f"Only the receiver can {action} an exchange request"
            )
        if exchange_request.status != "pending":
            raise HTTPException(
                status_code=400,
                detail=f"Exchange request has already been {exchange_request.status}",
            )
        return exchange_request

    async def accept_exchange_request(self, exchange_request_id: int, user: User) -> ExchangeRequest:
        """Accept, then open the two booking drafts and the chat conversation"""
        exchange_request = self._get_pending_for_receiver(exchange_request_id, user, "accept")
        exchange_request.status = "accepted"
        self.db.commit()
        self.db.refresh(exchange_request)
        logger.info(f"✅ Exchange request {exchange_request.id} accepted")

        SessionBookingService(self.db).create_bookings_for_exchange_request(exchange_request.id)

        try:
            await create_conversation(
                exchange_request.requester_id, exchange_request.receiver_id, exchange_request.id
            )
        except Exception as e:
            logger.error(f"❌ Failed to create conversation for exchange request {exchange_request.id}: {e}")

        message = (
            f"{user.name} accepted your exchange request. "
            f"Set up your {exchange_request.teaching_skill} sessions now."
        )
        await enqueue_notification(
            NotificationPayload(
                user_id=exchange_request.requester_id,
                type="exchange_request",
                title="Exchange Request Accepted",
                message=message,
                data={"exchangeRequestId": exchange_request.id},
                template=NotificationTemplate(
                    push_title="Exchange Request Accepted 🎉",
                    push_body=message,
                    push_data={"type": "exchange_request_accepted", "exchangeRequestId": exchange_request.id},
                ),
            )
        )
        return exchange_request

    def decline_exchange_request(self, exchange_request_id: int, user: User) -> ExchangeRequest:
        exchange_request = self._get_pending_for_receiver(exchange_request_id, user, "decline")
        exchange_request.status = "declined"
        self.db.commit()
        self.db.refresh(exchange_request)
        logger.info(f"Exchange request {exchange_request.id} declined")
        return exchange_request
