"""Exchange request schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...security_utils import sanitize_text


class ExchangeRequestCreate(BaseModel):
    receiverId: int
    message: Optional[str] = Field(None, max_length=500)
    teachingSkill: str = Field(..., min_length=1, max_length=100)
    learningSkill: str = Field(..., min_length=1, max_length=100)

    @field_validator("teachingSkill", "learningSkill")
    @classmethod
    def strip_skill(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Skill is required")
        return v

    @field_validator("message")
    @classmethod
    def clean_message(cls, v):
        return sanitize_text(v) or None
