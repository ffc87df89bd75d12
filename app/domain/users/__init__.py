"""Users domain - Profiles, account settings, dashboard stats and public profiles"""

from .router import router

__all__ = ["router"]
