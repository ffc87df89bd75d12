"""Reviews domain - Ratings users leave each other per skill"""

from .router import router

__all__ = ["router"]
