"""Notification settings service - Partial per-channel updates"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import NotificationSettings, User
from .repository import NotificationSettingsRepository
from .schemas import NotificationSettingsUpdate

logger = logging.getLogger(__name__)

# Request key -> model column
CHANNEL_COLUMNS = {"email": "email", "push": "push", "inApp": "in_app"}


def serialize_settings(settings: NotificationSettings) -> dict:
    return {"email": settings.email, "push": settings.push, "inApp": settings.in_app}


class NotificationSettingsService:
    """Service layer for notification settings"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = NotificationSettingsRepository()

    def get_settings(self, user: User) -> NotificationSettings:
        settings = self.repo.get_for_user(self.db, user.id)
        if not settings:
            raise HTTPException(status_code=404, detail="Notification settings not found")
        return settings

    def update_settings(self, user: User, data: NotificationSettingsUpdate) -> NotificationSettings:
        settings = self.get_settings(user)

        for channel, column in CHANNEL_COLUMNS.items():
            channel_update = getattr(data, channel)
            if channel_update is None:
                continue
            changes = channel_update.model_dump(exclude_none=True)
            if changes:
                # Reassign so the JSON column is flagged dirty
                setattr(settings, column, {**getattr(settings, column), **changes})

        self.db.commit()
        self.db.refresh(settings)
        logger.info(f"🔔 Notification settings updated for user {user.id}")
        return settings
