"""Exchange requests domain - Proposals to swap one skill for another"""

from .router import router

__all__ = ["router"]
