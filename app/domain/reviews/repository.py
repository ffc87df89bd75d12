"""Review repository - Database operations for reviews"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Review, User


class ReviewRepository:
    @staticmethod
    def get_active_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()

    @staticmethod
    def get_review(db: Session, reviewed_user_id: int, reviewer_id: int, skill: str) -> Optional[Review]:
        return (
            db.query(Review)
            .filter(
                Review.reviewed_user_id == reviewed_user_id,
                Review.reviewer_id == reviewer_id,
                Review.skill == skill,
            )
            .first()
        )

    @staticmethod
    def create_review(db: Session, **fields) -> Review:
        review = Review(**fields)
        db.add(review)
        db.commit()
        db.refresh(review)
        return review
