"""Connections domain - Mutual skill matching between users"""

from .router import router

__all__ = ["router"]
