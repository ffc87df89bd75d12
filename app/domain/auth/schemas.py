"""Auth domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...schemas import SkillInput
from ...security_utils import sanitize_text, validate_password_strength
from ...shared.validators import validate_email, validate_url


class EmailRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class VerifyOtpRequest(EmailRequest):
    otp: str = Field(..., pattern=r"^\d{6}$", description="6-digit one-time code")


class RegisterRequest(BaseModel):
    """Schema for creating an account after the email has been verified"""

    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: str
    password: str
    skillsToTeach: list[SkillInput] = Field(default_factory=list)
    skillsToLearn: list[SkillInput] = Field(default_factory=list)
    about: Optional[str] = Field(None, max_length=1000)
    city: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    profile_picture: Optional[str] = None
    weekly_availability: int = Field(0, ge=0, le=168)

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_names(cls, v):
        v = sanitize_text(v)
        if not v:
            raise ValueError("Name cannot be empty")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return validate_password_strength(v)

    @field_validator("about", "city", "country")
    @classmethod
    def clean_text(cls, v):
        return sanitize_text(v)

    @field_validator("profile_picture")
    @classmethod
    def check_picture(cls, v):
        return validate_url(v, "Profile picture")


class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v):
        return v.strip().lower()


class RefreshTokenRequest(BaseModel):
    refreshToken: str = Field(..., min_length=1)


class LogoutRequest(BaseModel):
    refreshToken: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return validate_password_strength(v)
