"""Session booking schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...security_utils import sanitize_text
from ...shared.validators import validate_days_of_week, validate_start_time

SCHEDULE_FIELDS = ("daysPerWeek", "daysOfWeek", "startTime", "duration", "totalSessions")


class SessionBookingUpdate(BaseModel):
    """Schedule counter-proposal (proposer) or change request message (recipient)"""

    daysPerWeek: Optional[int] = Field(None, ge=1, le=7)
    daysOfWeek: Optional[list[str]] = None
    startTime: Optional[str] = None
    duration: Optional[int] = Field(None, ge=15, le=480)
    totalSessions: Optional[int] = Field(None, ge=1, le=1000)
    message: Optional[str] = Field(None, max_length=500)

    @field_validator("daysOfWeek")
    @classmethod
    def check_days(cls, v):
        return validate_days_of_week(v)

    @field_validator("startTime")
    @classmethod
    def check_start_time(cls, v):
        return validate_start_time(v)

    @field_validator("message")
    @classmethod
    def clean_message(cls, v):
        return sanitize_text(v)

    def schedule_changes(self) -> dict:
        """Schedule fields explicitly present in the request"""
        return {
            field: getattr(self, field)
            for field in SCHEDULE_FIELDS
            if field in self.model_fields_set and getattr(self, field) is not None
        }
