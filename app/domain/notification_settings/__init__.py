"""Notification settings domain - Per-channel opt-in/out for each notification type"""

from .router import router

__all__ = ["router"]
