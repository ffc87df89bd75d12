"""Stats domain - Public community highlights"""

from .router import router

__all__ = ["router"]
