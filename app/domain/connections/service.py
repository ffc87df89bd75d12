"""Connection service - Finds users whose skills complement the caller's"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import SkillToLearn, SkillToTeach, User
from ...schemas import PaginationParams
from ...shared.responses import pagination_block
from ..users.service import serialize_skills
from .repository import ConnectionRepository

logger = logging.getLogger(__name__)


class ConnectionService:
    """Service layer for skill matching"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ConnectionRepository()

    def get_connections(
        self,
        current_user: Optional[User],
        pagination: PaginationParams,
        search: Optional[str] = None,
        location: Optional[str] = None,
        skill: Optional[str] = None,
    ) -> dict:
        if current_user is None:
            raise HTTPException(status_code=401, detail="Authentication required to find skill matches")

        my_teach = self.repo.get_skill_names(self.db, SkillToTeach, current_user.id)
        my_learn = self.repo.get_skill_names(self.db, SkillToLearn, current_user.id)
        if not my_teach or not my_learn:
            return {
                "connections": [],
                "pagination": pagination_block(pagination.page, pagination.limit, 0),
            }

        excluded = self.repo.get_related_user_ids(self.db, current_user.id) | {current_user.id}
        query = self.repo.build_match_query(
            self.db, excluded, my_teach, my_learn, search=search, location=location, skill=skill
        )
        total = query.count()
        users = (
            query.order_by(User.created_at.desc(), User.id.desc())
            .offset(pagination.offset)
            .limit(pagination.limit)
            .all()
        )
        ratings = self.repo.get_rating_stats(self.db, [user.id for user in users])
        logger.info(f"🔍 Found {total} skill matches for user {current_user.id}")

        return {
            "connections": [self._format(user, ratings.get(user.id, (0, 0))) for user in users],
            "pagination": pagination_block(pagination.page, pagination.limit, total),
        }

    @staticmethod
    def _format(user: User, rating_stats: tuple[float, int]) -> dict:
        average, count = rating_stats
        return {
            "id": user.id,
            "avatarUrl": user.profile_picture or None,
            "initials": user.initials,
            "name": user.name,
            "location": user.location,
            "rating": round(average, 1) if count else 0,
            "numberOfReviews": count,
            "bio": user.about or None,
            "website": user.website or None,
            "teachingSkills": serialize_skills(user.skills_to_teach),
            "learningSkills": serialize_skills(user.skills_to_learn),
        }
