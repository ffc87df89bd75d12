"""Auth repository - Database operations for users, OTPs and revoked tokens"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import OTP, NotificationSettings, SkillToLearn, SkillToTeach, TokenBlacklist, User


class AuthRepository:
    """Repository for authentication database operations"""

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def get_active_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email, User.deleted_at.is_(None)).first()

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()

    @staticmethod
    def username_exists(db: Session, username: str) -> bool:
        return db.query(User.id).filter(User.username == username).first() is not None

    @staticmethod
    def create_user(db: Session, user_data: dict, skills_to_teach: list, skills_to_learn: list) -> User:
        """Create a user with skills and default notification settings in one transaction"""
        user = User(**user_data)
        # one row per name, later duplicates win
        teach = {s.name: s for s in skills_to_teach}
        learn = {s.name: s for s in skills_to_learn}
        user.skills_to_teach = [SkillToTeach(name=s.name, difficulty=s.difficulty) for s in teach.values()]
        user.skills_to_learn = [SkillToLearn(name=s.name, difficulty=s.difficulty) for s in learn.values()]
        user.notification_settings = NotificationSettings()
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    # ------------------------------------------------------------------
    # OTPs
    # ------------------------------------------------------------------

    @staticmethod
    def replace_otp(db: Session, email: str, purpose: str, otp_hash: str, expires_at: datetime) -> OTP:
        """Drop previous codes for this email/purpose and store the new one"""
        db.query(OTP).filter(OTP.email == email, OTP.purpose == purpose).delete()
        otp = OTP(email=email, otp_hash=otp_hash, purpose=purpose, expires_at=expires_at)
        db.add(otp)
        db.commit()
        return otp

    @staticmethod
    def get_latest_otp(db: Session, email: str, purpose: str, verified: bool) -> Optional[OTP]:
        return (
            db.query(OTP)
            .filter(OTP.email == email, OTP.purpose == purpose, OTP.verified == verified)
            .order_by(OTP.created_at.desc(), OTP.id.desc())
            .first()
        )

    @staticmethod
    def delete_otp(db: Session, otp: OTP) -> None:
        db.delete(otp)
        db.commit()

    # ------------------------------------------------------------------
    # Token blacklist
    # ------------------------------------------------------------------

    @staticmethod
    def is_blacklisted(db: Session, token: str) -> bool:
        return db.query(TokenBlacklist.id).filter(TokenBlacklist.token == token).first() is not None

    @staticmethod
    def blacklist_token(db: Session, token: str, expires_at: datetime) -> None:
        db.add(TokenBlacklist(token=token, expires_at=expires_at))
        db.commit()
