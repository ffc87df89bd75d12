"""Notification settings schemas - unknown keys are rejected"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class ChannelSettingsUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    exchangeRequests: Optional[bool] = None
    sessionReminders: Optional[bool] = None
    messages: Optional[bool] = None
    reviewsAndRatings: Optional[bool] = None
    achievements: Optional[bool] = None


class EmailSettingsUpdate(ChannelSettingsUpdate):
    securityAlerts: Optional[bool] = None


class NotificationSettingsUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: Optional[EmailSettingsUpdate] = None
    push: Optional[ChannelSettingsUpdate] = None
    inApp: Optional[ChannelSettingsUpdate] = None
