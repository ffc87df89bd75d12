"""Notification settings router"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...shared.responses import success_response
from .schemas import NotificationSettingsUpdate
from .service import NotificationSettingsService, serialize_settings

router = APIRouter(prefix="/notification-settings", tags=["Notification Settings"])


def get_notification_settings_service(db: Session = Depends(get_db)) -> NotificationSettingsService:
    """Dependency injection for NotificationSettingsService"""
    return NotificationSettingsService(db)


@router.get("")
async def get_notification_settings(
    current_user: User = Depends(get_current_user),
    service: NotificationSettingsService = Depends(get_notification_settings_service),
):
    settings = service.get_settings(current_user)
    return success_response("Notification settings retrieved successfully", serialize_settings(settings))


@router.patch("")
async def update_notification_settings(
    data: NotificationSettingsUpdate,
    current_user: User = Depends(get_current_user),
    service: NotificationSettingsService = Depends(get_notification_settings_service),
):
    settings = service.update_settings(current_user, data)
    return success_response("Notification settings updated successfully", serialize_settings(settings))
