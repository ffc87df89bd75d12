"""Auth router - FastAPI endpoints for authentication"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, status
from sqlalchemy.orm import Session

from ...database import get_db
from ...rate_limiter import otp_rate_limit
from ...shared.responses import success_response
from .schemas import (
    EmailRequest,
    LoginRequest,
    LogoutRequest,
    RefreshTokenRequest,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyOtpRequest,
)
from .service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Dependency injection for AuthService"""
    return AuthService(db)


# ============================================================================
# EMAIL VERIFICATION + REGISTRATION
# ============================================================================


@router.post("/email-verification", dependencies=[Depends(otp_rate_limit)])
async def send_email_verification(
    data: EmailRequest, service: AuthService = Depends(get_auth_service)
):
    await service.send_email_verification(data.email)
    return success_response("Verification code sent to your email")


@router.post("/verify-otp")
async def verify_otp(data: VerifyOtpRequest, service: AuthService = Depends(get_auth_service)):
    service.verify_email_otp(data.email, data.otp)
    return success_response("Email verified successfully")


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    result = await service.register(data)
    return success_response("User registered successfully", result)


# ============================================================================
# TOKENS
# ============================================================================


@router.post("/login")
async def login(data: LoginRequest, service: AuthService = Depends(get_auth_service)):
    return success_response("Login successful", service.login(data.email, data.password))


@router.post("/refresh-token")
async def refresh_token(
    data: RefreshTokenRequest, service: AuthService = Depends(get_auth_service)
):
    tokens = service.refresh_tokens(data.refreshToken)
    return success_response("Token refreshed successfully", tokens)


@router.post("/logout")
async def logout(
    data: Optional[LogoutRequest] = None,
    authorization: Optional[str] = Header(None),
    service: AuthService = Depends(get_auth_service),
):
    service.logout(authorization, data.refreshToken if data else None)
    return success_response("Logged out successfully")


# ============================================================================
# PASSWORD RESET
# ============================================================================


@router.post("/forgot-password", dependencies=[Depends(otp_rate_limit)])
async def forgot_password(data: EmailRequest, service: AuthService = Depends(get_auth_service)):
    await service.forgot_password(data.email)
    return success_response("If an account exists, a password reset code has been sent")


@router.post("/verify-password-reset-otp")
async def verify_password_reset_otp(
    data: VerifyOtpRequest, service: AuthService = Depends(get_auth_service)
):
    service.verify_password_reset_otp(data.email, data.otp)
    return success_response("Password reset code verified successfully")


@router.post("/reset-password")
async def reset_password(
    data: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)
):
    await service.reset_password(data.email, data.password)
    return success_response("Password reset successfully")
