"""Review router - Reviews are posted against a user"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...shared.responses import success_response
from .schemas import ReviewCreate
from .service import ReviewService

router = APIRouter(prefix="/users", tags=["Reviews"])


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    """Dependency injection for ReviewService"""
    return ReviewService(db)


@router.post("/{user_id}/reviews", status_code=status.HTTP_201_CREATED)
async def create_review(
    user_id: int,
    data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    await service.create_review(current_user, user_id, data)
    return success_response("Thank you for sharing your feedback!")
