"""User domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...schemas import SkillInput
from ...security_utils import sanitize_text, validate_password_strength
from ...shared.validators import (
    validate_email,
    validate_tag_list,
    validate_timezone,
    validate_url,
    validate_username,
)


class UserUpdate(BaseModel):
    """Partial profile update. Skill lists, when present, replace the existing ones."""

    first_name: Optional[str] = Field(None, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)
    username: Optional[str] = None
    email: Optional[str] = None
    about: Optional[str] = Field(None, max_length=1000)
    city: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    website: Optional[str] = None
    profile_picture: Optional[str] = None
    weekly_availability: Optional[int] = Field(None, ge=0, le=168)
    skills: Optional[list[str]] = None
    interests: Optional[list[str]] = None
    language: Optional[str] = Field(None, max_length=50)
    timezone: Optional[str] = None
    skillsToTeach: Optional[list[SkillInput]] = None
    skillsToLearn: Optional[list[SkillInput]] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def check_name(cls, v):
        if v is None:
            return v
        v = sanitize_text(v)
        if not v:
            raise ValueError("Name cannot be empty")
        return v

    @field_validator("username")
    @classmethod
    def check_username(cls, v):
        return validate_username(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        if v is None:
            return v
        return validate_email(v)

    @field_validator("about", "city", "country", "language")
    @classmethod
    def clean_text(cls, v):
        return sanitize_text(v)

    @field_validator("website")
    @classmethod
    def check_website(cls, v):
        return validate_url(v, "Website")

    @field_validator("profile_picture")
    @classmethod
    def check_picture(cls, v):
        return validate_url(v, "Profile picture")

    @field_validator("skills")
    @classmethod
    def check_skills(cls, v):
        return validate_tag_list(v, "Skills")

    @field_validator("interests")
    @classmethod
    def check_interests(cls, v):
        return validate_tag_list(v, "Interests")

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v):
        return validate_timezone(v)


class ChangePasswordRequest(BaseModel):
    currentPassword: str = Field(..., min_length=1)
    newPassword: str

    @field_validator("newPassword")
    @classmethod
    def check_password(cls, v):
        return validate_password_strength(v)


class FcmTokenRequest(BaseModel):
    """Device push token; null unregisters the device"""

    fcmToken: Optional[str] = Field(None, max_length=500)
