"""Sessions domain - Scheduled teaching sessions, completion and learning progress"""

from .router import router

__all__ = ["router"]
