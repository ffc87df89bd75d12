"""Review domain schemas"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...security_utils import sanitize_text


class ReviewCreate(BaseModel):
    skill: str = Field(..., min_length=1, max_length=100)
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)

    @field_validator("skill")
    @classmethod
    def strip_skill(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Skill is required")
        return v

    @field_validator("comment")
    @classmethod
    def clean_comment(cls, v):
        return sanitize_text(v)
