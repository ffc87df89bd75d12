"""Auth domain - Email verification, registration, tokens and password reset"""

from .router import router

__all__ = ["router"]
