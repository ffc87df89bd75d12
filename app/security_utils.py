"""
Security Utilities
Password/OTP hashing, JWT issuance and verification, and input sanitization
"""

import logging
import re
import secrets
from datetime import datetime, timedelta
from typing import Any, Optional

# Input sanitization
import bleach

# Token generation and validation
from jose import JWTError
from jose import jwt as jose_jwt

# Password hashing
from passlib.context import CryptContext

from .config import (
    JWT_ALGORITHM,
    JWT_EXPIRE,
    JWT_REFRESH_EXPIRE,
    JWT_REFRESH_SECRET,
    JWT_SECRET,
)

logger = logging.getLogger(__name__)

# argon2 for both passwords and OTP codes at rest
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")
DURATION_PATTERN = re.compile(r"^(\d+)\s*([smhd])$")
DURATION_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


# ============================================================================
# PASSWORD / OTP HASHING
# ============================================================================


def hash_secret(value: str) -> str:
    """Hash a password or OTP code with argon2"""
    return pwd_context.hash(value)


def verify_secret(plain_value: str, hashed_value: str) -> bool:
    """Verify a password or OTP code against its argon2 hash"""
    try:
        return pwd_context.verify(plain_value, hashed_value)
    except Exception as e:
        logger.error(f"Secret verification error: {e}")
        return False


def validate_password_strength(password: str) -> str:
    """Raise ValueError unless the password has 8+ chars with lower, upper and digit"""
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not PASSWORD_PATTERN.match(password):
        raise ValueError(
            "Password must contain at least one uppercase letter, one lowercase letter, and one number"
        )
    return password


def generate_otp() -> str:
    """Generate a 6-digit numeric one-time code"""
    return str(100000 + secrets.randbelow(900000))


# ============================================================================
# JWT
# ============================================================================


def parse_duration(value: str) -> timedelta:
    """Parse '15m', '7d', '3600s' style durations. Bare integers are seconds."""
    value = value.strip()
    if value.isdigit():
        return timedelta(seconds=int(value))
    match = DURATION_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid duration: {value}")
    amount, unit = match.groups()
    return timedelta(**{DURATION_UNITS[unit]: int(amount)})


def _create_token(payload: dict[str, Any], secret: str, expires_delta: timedelta) -> str:
    now = datetime.utcnow()
    to_encode = payload.copy()
    to_encode.update({"iat": now, "exp": now + expires_delta, "jti": secrets.token_hex(8)})
    return jose_jwt.encode(to_encode, secret, algorithm=JWT_ALGORITHM)


def create_token_pair(user_id: int, email: str) -> dict[str, str]:
    """Issue an access/refresh token pair for a user"""
    payload = {"userId": user_id, "email": email}
    access_token = _create_token(
        {**payload, "type": "access"}, JWT_SECRET, parse_duration(JWT_EXPIRE)
    )
    refresh_token = _create_token(
        {**payload, "type": "refresh"}, JWT_REFRESH_SECRET, parse_duration(JWT_REFRESH_EXPIRE)
    )
    return {"accessToken": access_token, "refreshToken": refresh_token}


def decode_access_token(token: str) -> Optional[dict[str, Any]]:
    """Verify an access token. Returns the payload or None."""
    try:
        payload = jose_jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        if payload.get("type") != "access":
            return None
        return payload
    except JWTError as e:
        logger.debug(f"Access token rejected: {e}")
        return None


def decode_refresh_token(token: str) -> Optional[dict[str, Any]]:
    """Verify a refresh token. Returns the payload or None."""
    try:
        payload = jose_jwt.decode(token, JWT_REFRESH_SECRET, algorithms=[JWT_ALGORITHM])
        if payload.get("type") != "refresh":
            return None
        return payload
    except JWTError as e:
        logger.debug(f"Refresh token rejected: {e}")
        return None


def token_expiry(payload: dict[str, Any]) -> datetime:
    """Expiry of a decoded token as naive UTC"""
    return datetime.utcfromtimestamp(payload["exp"])


def unverified_token_expiry(token: str, fallback: timedelta) -> datetime:
    """Expiry claim of a token without verifying it; now + fallback when unreadable"""
    try:
        return datetime.utcfromtimestamp(jose_jwt.get_unverified_claims(token)["exp"])
    except (JWTError, KeyError, TypeError, ValueError):
        return datetime.utcnow() + fallback


# ============================================================================
# INPUT SANITIZATION
# ============================================================================


def sanitize_text(value: Optional[str]) -> Optional[str]:
    """Strip all markup from user-supplied free text"""
    if value is None:
        return None
    return bleach.clean(value, tags=[], attributes={}, strip=True).strip()
