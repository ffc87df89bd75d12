"""User service - Business logic for profiles, account settings and public profiles"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import invalidate_community_stats
from ...models import SkillToLearn, SkillToTeach, User
from ...security_utils import hash_secret, verify_secret
from ...services.notification_service import build_security_alert, enqueue_notification
from ...shared.responses import average_rating, user_summary
from .repository import UserRepository
from .schemas import ChangePasswordRequest, UserUpdate

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "username",
    "email",
    "about",
    "city",
    "country",
    "website",
    "profile_picture",
    "weekly_availability",
    "skills",
    "interests",
    "language",
    "timezone",
)


def serialize_skills(skills) -> list[dict]:
    return [{"name": skill.name, "difficulty": skill.difficulty} for skill in skills]


def user_details(user: User) -> dict:
    """The caller's own profile as returned by GET/PATCH /users/me"""
    return {
        "first_name": user.first_name,
        "last_name": user.last_name,
        "username": user.username,
        "email": user.email,
        "about": user.about,
        "location": user.location,
        "website": user.website,
        "skills": user.skills or [],
        "interests": user.interests or [],
        "language": user.language,
        "timezone": user.timezone,
    }


def serialize_user(user: User) -> dict:
    """User object returned alongside tokens on register/login"""
    return {
        "id": user.id,
        **user_details(user),
        "profile_picture": user.profile_picture,
        "weekly_availability": user.weekly_availability,
        "teachingSkills": serialize_skills(user.skills_to_teach),
        "learningSkills": serialize_skills(user.skills_to_learn),
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }


class UserService:
    """Service layer for user business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def get_user(self, user_id: int) -> User:
        user = self.repo.get_active_user(self.db, user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return user

    def update_user(self, user: User, data: UserUpdate) -> User:
        updates = data.model_dump(exclude_unset=True)

        username = updates.get("username")
        if username and username != user.username:
            if self.repo.username_taken(self.db, username, user.id):
                raise HTTPException(status_code=400, detail="Username already taken")

        email = updates.get("email")
        if email and email != user.email:
            if self.repo.email_taken(self.db, email, user.id):
                raise HTTPException(status_code=400, detail="Email already taken")

        for field in PROFILE_FIELDS:
            if field not in updates:
                continue
            value = updates[field]
            # Required columns can't be cleared
            if value is None and field in ("first_name", "last_name", "username", "email"):
                continue
            setattr(user, field, value)

        if data.skillsToTeach is not None:
            self.repo.replace_skills(self.db, user, SkillToTeach, data.skillsToTeach)
        if data.skillsToLearn is not None:
            self.repo.replace_skills(self.db, user, SkillToLearn, data.skillsToLearn)

        self.db.commit()
        self.db.refresh(user)
        logger.info(f"✅ User {user.id} updated fields: {sorted(updates.keys())}")
        return user

    def delete_user(self, user: User) -> None:
        """Soft delete: the row stays, every lookup filters on deleted_at"""
        user.deleted_at = datetime.utcnow()
        # usernames are unique across all rows, so release it for reuse
        user.username = f"deleted_{user.id}"
        user.fcm_token = None
        self.db.commit()
        invalidate_community_stats()
        logger.info(f"🗑️ User {user.id} soft-deleted")

    def get_stats(self, user: User) -> dict:
        ratings = self.repo.get_ratings(self.db, user.id)
        return {
            "sessionsCompleted": self.repo.count_sessions(self.db, user.id, "completed"),
            "sessionsUpcoming": self.repo.count_sessions(
                self.db, user.id, "scheduled", upcoming_only=True
            ),
            "activeExchanges": self.repo.count_active_exchanges(self.db, user.id),
            "pendingRequests": self.repo.count_pending_received(self.db, user.id),
            "averageRating": average_rating(ratings),
            "numberOfReviews": len(ratings),
            "skillsTeaching": self.repo.count_skills(self.db, SkillToTeach, user.id),
            "skillsLearning": self.repo.count_skills(self.db, SkillToLearn, user.id),
        }

    async def change_password(self, user: User, data: ChangePasswordRequest) -> None:
        if not verify_secret(data.currentPassword, user.password):
            raise HTTPException(status_code=400, detail="Current password is incorrect")
        if data.currentPassword == data.newPassword:
            raise HTTPException(
                status_code=400, detail="New password must be different from the current password"
            )

        user.password = hash_secret(data.newPassword)
        self.db.commit()
        logger.info(f"🔐 Password changed for user {user.id}")

        await enqueue_notification(
            build_security_alert(user, "Your Skill Barter password was changed.")
        )

    def set_fcm_token(self, user: User, fcm_token: Optional[str]) -> None:
        user.fcm_token = fcm_token or None
        self.db.commit()
        logger.info(
            f"📱 FCM token {'registered' if user.fcm_token else 'cleared'} for user {user.id}"
        )

    # ========================================================================
    # PUBLIC PROFILE
    # ========================================================================

    def connection_status(self, viewer: Optional[User], target: User) -> Optional[str]:
        """How the viewer relates to the target through exchange requests"""
        if viewer is None:
            return None
        if viewer.id == target.id:
            return "self"

        requests = self.repo.get_requests_between(self.db, viewer.id, target.id)
        if not requests:
            return "none"
        if any(request.status == "accepted" for request in requests):
            return "connected"

        latest = requests[0]
        if latest.status == "declined":
            return "declined"
        return "pending_sent" if latest.requester_id == viewer.id else "pending_received"

    def get_public_profile(self, user_id: int, viewer: Optional[User]) -> dict:
        user = self.get_user(user_id)
        ratings = self.repo.get_ratings(self.db, user.id)
        reviews = self.repo.get_latest_reviews(self.db, user.id)

        return {
            **user_summary(user),
            "about": user.about,
            "location": user.location,
            "website": user.website,
            "language": user.language,
            "timezone": user.timezone,
            "weeklyAvailability": user.weekly_availability,
            "teachingSkills": serialize_skills(user.skills_to_teach),
            "learningSkills": serialize_skills(user.skills_to_learn),
            "rating": average_rating(ratings),
            "numberOfReviews": len(ratings),
            "reviews": [
                {
                    "id": review.id,
                    "reviewer": user_summary(review.reviewer),
                    "skill": review.skill,
                    "rating": review.rating,
                    "comment": review.comment,
                    "createdAt": review.created_at.isoformat() if review.created_at else None,
                }
                for review in reviews
            ],
            "connectionStatus": self.connection_status(viewer, user),
        }
