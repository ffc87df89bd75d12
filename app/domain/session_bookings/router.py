"""Session booking router - FastAPI endpoints for schedule negotiation"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...schemas import PaginationParams
from ...shared.responses import success_response
from .schemas import SessionBookingUpdate
from .service import SessionBookingService, serialize_booking

router = APIRouter(prefix="/session-bookings", tags=["Session Bookings"])


def get_session_booking_service(db: Session = Depends(get_db)) -> SessionBookingService:
    """Dependency injection for SessionBookingService"""
    return SessionBookingService(db)


@router.get("")
async def get_session_bookings(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: SessionBookingService = Depends(get_session_booking_service),
):
    result = service.get_session_bookings(current_user, PaginationParams(page=page, limit=limit))
    return success_response("Session bookings retrieved successfully", result)


@router.get("/{booking_id}")
async def get_session_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: SessionBookingService = Depends(get_session_booking_service),
):
    booking = service.get_session_booking(booking_id, current_user)
    return success_response(
        "Session booking retrieved successfully", serialize_booking(booking, current_user.id)
    )


@router.patch("/{booking_id}")
async def update_session_booking(
    booking_id: int,
    data: SessionBookingUpdate,
    current_user: User = Depends(get_current_user),
    service: SessionBookingService = Depends(get_session_booking_service),
):
    booking = await service.update_session_booking(booking_id, current_user, data)
    return success_response(
        "Session booking updated successfully", serialize_booking(booking, current_user.id)
    )


@router.patch("/{booking_id}/accept")
async def accept_session_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: SessionBookingService = Depends(get_session_booking_service),
):
    sessions = await service.accept_session_booking(booking_id, current_user)
    return success_response(
        "Session booking accepted and sessions created successfully",
        {"sessionsCreated": len(sessions)},
    )
