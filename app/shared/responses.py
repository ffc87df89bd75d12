"""Shared response helpers: success envelope, pagination and user summaries"""

import math
from typing import Any, Optional

from ..models import User


def success_response(message: str, data: Any = None) -> dict:
    """Standard success envelope returned by every endpoint"""
    return {"status": "success", "message": message, "data": data}


def pagination_block(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }


def user_summary(user: Optional[User]) -> Optional[dict]:
    """Compact user card used in exchange requests, bookings and sessions"""
    if user is None:
        return None
    return {
        "id": user.id,
        "name": user.name,
        "username": user.username,
        "avatarUrl": user.profile_picture or None,
        "initials": user.initials,
    }


def average_rating(ratings: list[int]) -> float:
    """Mean rating rounded to one decimal, 0 when there are none"""
    if not ratings:
        return 0
    return round(sum(ratings) / len(ratings), 1)
