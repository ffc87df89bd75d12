"""Session bookings domain - Negotiating a recurring schedule and materializing sessions"""

from .router import router

__all__ = ["router"]
