"""Auth service - Business logic for verification, registration, tokens and password reset"""

import logging
import random
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import invalidate_community_stats
from ...config import JWT_EXPIRE, OTP_EXPIRE_MINUTES
from ...email_service import (
    send_email_verification_otp,
    send_password_reset_otp,
    send_welcome_email,
)
from ...models import User
from ...security_utils import (
    create_token_pair,
    decode_refresh_token,
    generate_otp,
    hash_secret,
    parse_duration,
    token_expiry,
    unverified_token_expiry,
    verify_secret,
)
from ...services.notification_service import build_security_alert, enqueue_notification
from ...shared.validators import build_username_base
from ..users.service import serialize_user
from .repository import AuthRepository
from .schemas import RegisterRequest

logger = logging.getLogger(__name__)

EMAIL_VERIFICATION = "email_verification"
PASSWORD_RESET = "password_reset"


class AuthService:
    """Service layer for authentication business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AuthRepository()

    # ========================================================================
    # OTP HELPERS
    # ========================================================================

    def _issue_otp(self, email: str, purpose: str) -> str:
        otp = generate_otp()
        expires_at = datetime.utcnow() + timedelta(minutes=OTP_EXPIRE_MINUTES)
        self.repo.replace_otp(self.db, email, purpose, hash_secret(otp), expires_at)
        return otp

    def _verify_otp(self, email: str, otp: str, purpose: str) -> None:
        record = self.repo.get_latest_otp(self.db, email, purpose, verified=False)
        if not record:
            raise HTTPException(status_code=400, detail="Invalid or expired OTP")
        if record.expires_at < datetime.utcnow():
            raise HTTPException(status_code=400, detail="OTP has expired")
        if not verify_secret(otp, record.otp_hash):
            raise HTTPException(status_code=400, detail="Invalid or expired OTP")

        record.verified = True
        self.db.commit()

    # ========================================================================
    # EMAIL VERIFICATION + REGISTRATION
    # ========================================================================

    async def send_email_verification(self, email: str) -> None:
        if self.repo.get_user_by_email(self.db, email):
            raise HTTPException(status_code=400, detail="Email already registered")

        otp = self._issue_otp(email, EMAIL_VERIFICATION)
        try:
            await send_email_verification_otp(email, otp)
        except Exception as e:
            logger.error(f"❌ Failed to send verification email to {email}: {e}")
            raise HTTPException(status_code=500, detail="Failed to send verification email") from e
        logger.info(f"📧 Verification code sent to {email}")

    def verify_email_otp(self, email: str, otp: str) -> None:
        self._verify_otp(email, otp, EMAIL_VERIFICATION)
        logger.info(f"✅ Email verified: {email}")

    def _generate_username(self, email: str) -> str:
        base = build_username_base(email)
        while True:
            candidate = f"{base}{random.randint(0, 999)}"
            if not self.repo.username_exists(self.db, candidate):
                return candidate

    async def register(self, data: RegisterRequest) -> dict:
        verified_otp = self.repo.get_latest_otp(self.db, data.email, EMAIL_VERIFICATION, verified=True)
        if not verified_otp:
            raise HTTPException(
                status_code=400, detail="Email not verified. Please verify your email first."
            )

        if self.repo.get_user_by_email(self.db, data.email):
            raise HTTPException(status_code=400, detail="User already exists")

        user = self.repo.create_user(
            self.db,
            {
                "first_name": data.first_name,
                "last_name": data.last_name,
                "username": self._generate_username(data.email),
                "email": data.email,
                "password": hash_secret(data.password),
                "about": data.about,
                "city": data.city,
                "country": data.country,
                "profile_picture": data.profile_picture,
                "weekly_availability": data.weekly_availability,
            },
            data.skillsToTeach,
            data.skillsToLearn,
        )
        self.repo.delete_otp(self.db, verified_otp)
        invalidate_community_stats()
        logger.info(f"✅ User registered: {user.id} ({user.username})")

        try:
            await send_welcome_email(user.email, user.first_name)
        except Exception as e:
            logger.error(f"❌ Failed to send welcome email to {user.email}: {e}")

        return {"user": serialize_user(user), **create_token_pair(user.id, user.email)}

    # ========================================================================
    # SESSIONS
    # ========================================================================

    def login(self, email: str, password: str) -> dict:
        user = self.repo.get_active_user_by_email(self.db, email)
        if not user or not verify_secret(password, user.password):
            logger.warning(f"⚠️ Failed login attempt for {email}")
            raise HTTPException(status_code=401, detail="Invalid email or password")

        logger.info(f"✅ User logged in: {user.id}")
        return {"user": serialize_user(user), **create_token_pair(user.id, user.email)}

    def refresh_tokens(self, refresh_token: str) -> dict:
        if self.repo.is_blacklisted(self.db, refresh_token):
            raise HTTPException(status_code=401, detail="Token has been revoked")

        payload = decode_refresh_token(refresh_token)
        if not payload or "userId" not in payload:
            raise HTTPException(status_code=401, detail="Invalid or expired refresh token")

        user = self.repo.get_user_by_id(self.db, int(payload["userId"]))
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        # Rotation: the old refresh token can't be replayed
        self.repo.blacklist_token(self.db, refresh_token, token_expiry(payload))
        return create_token_pair(user.id, user.email)

    def logout(self, authorization: Optional[str], refresh_token: Optional[str]) -> None:
        if not authorization:
            raise HTTPException(status_code=401, detail="Access token is required")
        if not authorization.startswith("Bearer "):
            raise HTTPException(status_code=401, detail="Invalid access token format")

        access_token = authorization[len("Bearer "):].strip()
        if not self.repo.is_blacklisted(self.db, access_token):
            self.repo.blacklist_token(
                self.db,
                access_token,
                unverified_token_expiry(access_token, parse_duration(JWT_EXPIRE)),
            )

        if refresh_token and not self.repo.is_blacklisted(self.db, refresh_token):
            payload = decode_refresh_token(refresh_token)
            if payload:
                self.repo.blacklist_token(self.db, refresh_token, token_expiry(payload))
        logger.info("✅ User logged out, tokens revoked")

    # ========================================================================
    # PASSWORD RESET
    # ========================================================================

    async def forgot_password(self, email: str) -> None:
        """Never reveals whether the account exists"""
        user = self.repo.get_active_user_by_email(self.db, email)
        if not user:
            logger.info(f"Password reset requested for unknown email {email}")
            return

        otp = self._issue_otp(email, PASSWORD_RESET)
        try:
            await send_password_reset_otp(email, otp)
            logger.info(f"📧 Password reset code sent to {email}")
        except Exception as e:
            logger.error(f"❌ Failed to send password reset email to {email}: {e}")

    def verify_password_reset_otp(self, email: str, otp: str) -> None:
        self._verify_otp(email, otp, PASSWORD_RESET)

    async def reset_password(self, email: str, password: str) -> None:
        verified_otp = self.repo.get_latest_otp(self.db, email, PASSWORD_RESET, verified=True)
        if not verified_otp:
            raise HTTPException(
                status_code=400,
                detail="Password reset not verified. Please verify the reset code first.",
            )

        user: Optional[User] = self.repo.get_active_user_by_email(self.db, email)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        user.password = hash_secret(password)
        self.db.commit()
        self.repo.delete_otp(self.db, verified_otp)
        logger.info(f"✅ Password reset for user {user.id}")

        await enqueue_notification(
            build_security_alert(user, "Your Skill Barter password was reset.")
        )
