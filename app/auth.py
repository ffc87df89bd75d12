import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import TokenBlacklist, User
from .security_utils import decode_access_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def is_token_blacklisted(db: Session, token: str) -> bool:
    return db.query(TokenBlacklist.id).filter(TokenBlacklist.token == token).first() is not None


def _resolve_user(db: Session, token: str) -> User:
    if is_token_blacklisted(db, token):
        logger.warning("⚠️ Rejected revoked access token")
        raise HTTPException(status_code=401, detail="Token has been revoked")

    payload = decode_access_token(token)
    if not payload or "userId" not in payload:
        raise HTTPException(status_code=401, detail="Invalid token")

    user = (
        db.query(User)
        .filter(User.id == int(payload["userId"]), User.deleted_at.is_(None))
        .first()
    )
    if not user:
        raise HTTPException(status_code=401, detail="User no longer exists")
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the authenticated user from the Bearer access token"""
    if not credentials or not credentials.credentials:
        raise HTTPException(status_code=401, detail="No token provided")
    return _resolve_user(db, credentials.credentials)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user, but anonymous or invalid callers resolve to None"""
    if not credentials or not credentials.credentials:
        return None
    try:
        return _resolve_user(db, credentials.credentials)
    except HTTPException:
        return None
