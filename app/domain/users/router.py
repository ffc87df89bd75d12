"""User router - FastAPI endpoints for the caller's account and public profiles"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_optional_user
from ...database import get_db
from ...models import User
from ...shared.responses import success_response
from .schemas import ChangePasswordRequest, FcmTokenRequest, UserUpdate
from .service import UserService, user_details

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


# ============================================================================
# CURRENT USER
# ============================================================================


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)):
    return success_response("User details retrieved successfully", user_details(current_user))


@router.patch("/me")
async def update_me(
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    user = service.update_user(current_user, data)
    return success_response("User updated successfully", user_details(user))


@router.delete("/me")
async def delete_me(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    service.delete_user(current_user)
    return success_response("User deleted successfully")


@router.get("/me/stats")
async def get_my_stats(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return success_response("User stats retrieved successfully", service.get_stats(current_user))


@router.post("/me/change-password")
async def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    await service.change_password(current_user, data)
    return success_response("Password changed successfully")


@router.put("/me/fcm-token")
async def update_fcm_token(
    data: FcmTokenRequest,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    service.set_fcm_token(current_user, data.fcmToken)
    message = "FCM token updated successfully" if data.fcmToken else "FCM token removed successfully"
    return success_response(message)


# ============================================================================
# PUBLIC PROFILES
# ============================================================================


@router.get("/{user_id}/profile")
async def get_user_profile(
    user_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    service: UserService = Depends(get_user_service),
):
    profile = service.get_public_profile(user_id, current_user)
    return success_response("User profile retrieved successfully", profile)
