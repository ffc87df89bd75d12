"""Shared validation utilities"""

import re
from typing import Optional

from ..models import DAYS_OF_WEEK

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
URL_PATTERN = re.compile(r"^https?://.+")
USERNAME_PATTERN = re.compile(r"^[a-z0-9_]+$")
TIMEZONE_PATTERN = re.compile(r"^[A-Za-z_]+/[A-Za-z_]+$")
START_TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")


def validate_url(value: Optional[str], field_name: str = "URL") -> Optional[str]:
    """Validate an http(s) URL. Empty strings normalise to None."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if not URL_PATTERN.match(value):
        raise ValueError(f"{field_name} must be a valid URL starting with http:// or https://")
    return value


def validate_username(username: Optional[str]) -> Optional[str]:
    """
    Validate and normalise a username.

    Returns:
        Lowercase username

    Raises:
        ValueError: If the username is not 3-30 chars of [a-z0-9_]
    """
    if username is None:
        return None
    username = username.strip().lower()
    if len(username) < 3 or len(username) > 30:
        raise ValueError("Username must be between 3 and 30 characters")
    if not USERNAME_PATTERN.match(username):
        raise ValueError("Username can only contain lowercase letters, numbers, and underscores")
    return username


def validate_timezone(timezone: Optional[str]) -> Optional[str]:
    if timezone is None:
        return None
    if not TIMEZONE_PATTERN.match(timezone):
        raise ValueError("Please provide a valid timezone (e.g., America/New_York)")
    return timezone


def validate_start_time(start_time: Optional[str]) -> Optional[str]:
    if start_time is None:
        return None
    if not START_TIME_PATTERN.match(start_time):
        raise ValueError("Start time must be in HH:MM format (24-hour)")
    return start_time


def validate_days_of_week(days: Optional[list[str]]) -> Optional[list[str]]:
    """Between 1 and 7 unique day names (Monday..Sunday)"""
    if days is None:
        return None
    if len(days) == 0 or len(days) > 7:
        raise ValueError("Days of week must have between 1 and 7 days")
    if len(set(days)) != len(days):
        raise ValueError("Days of week must not contain duplicates")
    if not all(day in DAYS_OF_WEEK for day in days):
        raise ValueError(f"Days of week must be valid day names: {', '.join(DAYS_OF_WEEK)}")
    return days


def validate_tag_list(values: Optional[list[str]], label: str) -> Optional[list[str]]:
    """Skills/interests: at most 50 entries, each 1-100 chars after trimming"""
    if values is None:
        return None
    if len(values) > 50:
        raise ValueError(f"{label} cannot have more than 50 entries")
    cleaned = []
    for value in values:
        value = value.strip()
        if not value or len(value) > 100:
            raise ValueError(f"Each {label.lower().rstrip('s')} must be between 1 and 100 characters")
        cleaned.append(value)
    return cleaned


def build_username_base(email: str) -> str:
    """Derive a username stem from an email local part, restricted to [a-z0-9_]"""
    local_part = email.split("@")[0].lower()
    base = re.sub(r"[^a-z0-9_]", "", local_part)
    if len(base) < 3:
        base = (base + "user")[:4]
    return base[:26]


def validate_email(email: str) -> str:
    """Trim and lowercase an email address, rejecting malformed ones"""
    email = email.strip().lower()
    if len(email) > 255 or not EMAIL_PATTERN.match(email):
        raise ValueError("Please provide a valid email address")
    return email
