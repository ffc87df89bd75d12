"""Connection repository - Candidate queries for skill matching"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from ...models import ExchangeRequest, Review, SkillToLearn, SkillToTeach, User


def contains_pattern(term: str) -> str:
    """LIKE pattern matching term anywhere, with its wildcards taken literally"""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ConnectionRepository:
    """Repository for connection database operations"""

    @staticmethod
    def get_skill_names(db: Session, model, user_id: int) -> set[str]:
        """Lowercased skill names of one user"""
        return {row.name.lower() for row in db.query(model.name).filter(model.user_id == user_id).all()}

    @staticmethod
    def get_related_user_ids(db: Session, user_id: int) -> set[int]:
        """Users with an exchange request to or from this user, whatever its status"""
        rows = (
            db.query(ExchangeRequest.requester_id, ExchangeRequest.receiver_id)
            .filter(or_(ExchangeRequest.requester_id == user_id, ExchangeRequest.receiver_id == user_id))
            .all()
        )
        related = set()
        for requester_id, receiver_id in rows:
            related.update((requester_id, receiver_id))
        return related

    @staticmethod
    def build_match_query(
        db: Session,
        excluded_ids: set[int],
        my_teach: set[str],
        my_learn: set[str],
        search: Optional[str] = None,
        location: Optional[str] = None,
        skill: Optional[str] = None,
    ) -> Query:
        """Live users who teach something I learn AND learn something I teach"""
        query = db.query(User).filter(
            User.deleted_at.is_(None),
            User.id.notin_(excluded_ids),
            User.skills_to_teach.any(func.lower(SkillToTeach.name).in_(my_learn)),
            User.skills_to_learn.any(func.lower(SkillToLearn.name).in_(my_teach)),
        )

        if search:
            pattern = contains_pattern(search)
            query = query.filter(
                or_(
                    User.first_name.ilike(pattern, escape="\\"),
                    User.last_name.ilike(pattern, escape="\\"),
                    User.username.ilike(pattern, escape="\\"),
                )
            )

        if location:
            pattern = contains_pattern(location)
            query = query.filter(
                or_(User.city.ilike(pattern, escape="\\"), User.country.ilike(pattern, escape="\\"))
            )

        if skill:
            pattern = contains_pattern(skill.lower())
            query = query.filter(
                or_(
                    User.skills_to_teach.any(func.lower(SkillToTeach.name).like(pattern, escape="\\")),
                    User.skills_to_learn.any(func.lower(SkillToLearn.name).like(pattern, escape="\\")),
                )
            )

        return query

    @staticmethod
    def get_rating_stats(db: Session, user_ids: list[int]) -> dict[int, tuple[float, int]]:
        """{user_id: (average rating, review count)} for the given users"""
        if not user_ids:
            return {}
        rows = (
            db.query(Review.reviewed_user_id, func.avg(Review.rating), func.count(Review.id))
            .filter(Review.reviewed_user_id.in_(user_ids))
            .group_by(Review.reviewed_user_id)
            .all()
        )
        return {user_id: (float(avg or 0), count) for user_id, avg, count in rows}
