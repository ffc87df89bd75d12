"""Review service - Business logic for leaving reviews"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import invalidate_community_stats
from ...config import FRONTEND_URL
from ...email_templates import review_received_template
from ...models import Review, User
from ...services.notification_service import (
    ACTION_URL_PATTERNS,
    NotificationPayload,
    NotificationTemplate,
    enqueue_notification,
)
from .repository import ReviewRepository
from .schemas import ReviewCreate

logger = logging.getLogger(__name__)


class ReviewService:
    """Service layer for review business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReviewRepository()

    async def create_review(self, reviewer: User, reviewed_user_id: int, data: ReviewCreate) -> Review:
        reviewed_user = self.repo.get_active_user(self.db, reviewed_user_id)
        if not reviewed_user:
            raise HTTPException(status_code=404, detail="User to review not found")

        if reviewer.id == reviewed_user.id:
            raise HTTPException(status_code=400, detail="You cannot review yourself")

        if self.repo.get_review(self.db, reviewed_user.id, reviewer.id, data.skill):
            raise HTTPException(
                status_code=400,
                detail=f'You have already reviewed this user for the skill "{data.skill}"',
            )

        review = self.repo.create_review(
            self.db,
            reviewed_user_id=reviewed_user.id,
            reviewer_id=reviewer.id,
            skill=data.skill,
            rating=data.rating,
            comment=data.comment,
        )
        invalidate_community_stats()
        logger.info(f"⭐ User {reviewer.id} reviewed user {reviewed_user.id} ({data.rating}/5)")

        message = f"{reviewer.name} rated you {data.rating}/5 for {data.skill}"
        await enqueue_notification(
            NotificationPayload(
                user_id=reviewed_user.id,
                type="review_and_rating",
                title="New Review",
                message=message,
                data={"reviewId": review.id},
                template=NotificationTemplate(
                    email_subject="You Received a New Review - Skill Barter",
                    email_mjml=review_received_template(
                        reviewed_user.first_name,
                        reviewer.name,
                        data.skill,
                        data.rating,
                        f"{FRONTEND_URL}{ACTION_URL_PATTERNS['review_and_rating']}",
                    ),
                    push_title="New Review ⭐",
                    push_body=message,
                    push_data={"type": "review_and_rating", "reviewId": review.id},
                ),
            )
        )
        return review
