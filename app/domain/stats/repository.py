"""Stats repository - Aggregate queries across the community"""

from typing import Optional

from sqlalchemy import func, select, union_all
from sqlalchemy.orm import Session

from ...models import ExchangeRequest, Review, User


class StatsRepository:
    @staticmethod
    def count_active_members(db: Session) -> int:
        return db.query(func.count(User.id)).filter(User.deleted_at.is_(None)).scalar() or 0

    @staticmethod
    def most_exchanged_skill(db: Session) -> Optional[str]:
        """Most frequent skill across both sides of every exchange request"""
        skills = union_all(
            select(ExchangeRequest.teaching_skill.label("skill")),
            select(ExchangeRequest.learning_skill.label("skill")),
        ).subquery()
        row = (
            db.query(skills.c.skill, func.count().label("uses"))
            .group_by(skills.c.skill)
            .order_by(func.count().desc(), skills.c.skill)
            .first()
        )
        return row.skill if row else None

    @staticmethod
    def average_rating(db: Session) -> Optional[float]:
        value = db.query(func.avg(Review.rating)).scalar()
        return float(value) if value is not None else None
