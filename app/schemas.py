from typing import Literal

from pydantic import BaseModel, Field, field_validator


class SkillInput(BaseModel):
    """A skill a user teaches or wants to learn"""

    name: str = Field(..., min_length=1, max_length=100)
    difficulty: Literal["beginner", "intermediate", "advanced"]

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Skill name cannot be empty")
        return v


class PaginationParams(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
