"""Notification settings repository"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import NotificationSettings


class NotificationSettingsRepository:
    @staticmethod
    def get_for_user(db: Session, user_id: int) -> Optional[NotificationSettings]:
        return db.query(NotificationSettings).filter(NotificationSettings.user_id == user_id).first()
