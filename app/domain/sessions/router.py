"""Session router - FastAPI endpoints for scheduled sessions"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...schemas import PaginationParams
from ...shared.responses import success_response
from .service import SessionService, serialize_session

router = APIRouter(prefix="/sessions", tags=["Sessions"])


def get_session_service(db: Session = Depends(get_db)) -> SessionService:
    """Dependency injection for SessionService"""
    return SessionService(db)


@router.get("")
async def get_sessions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[Literal["scheduled", "active", "completed"]] = Query(None),
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    result = service.get_sessions(current_user, PaginationParams(page=page, limit=limit), status)
    return success_response("Sessions retrieved successfully", result)


@router.get("/learning-progress")
async def get_learning_progress(
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    return success_response(
        "Learning progress retrieved successfully", service.get_learning_progress(current_user)
    )


@router.post("/{session_id}/complete")
async def complete_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    service: SessionService = Depends(get_session_service),
):
    session = service.complete_session(session_id, current_user)
    return success_response(
        "Session marked as completed successfully", serialize_session(session, current_user.id)
    )
