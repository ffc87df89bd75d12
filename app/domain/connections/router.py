"""Connection router - Skill match discovery"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_optional_user
from ...database import get_db
from ...models import User
from ...schemas import PaginationParams
from ...shared.responses import success_response
from .service import ConnectionService

router = APIRouter(prefix="/connections", tags=["Connections"])


def get_connection_service(db: Session = Depends(get_db)) -> ConnectionService:
    """Dependency injection for ConnectionService"""
    return ConnectionService(db)


@router.get("")
async def get_connections(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    location: Optional[str] = Query(None, max_length=100),
    skill: Optional[str] = Query(None, max_length=100),
    current_user: Optional[User] = Depends(get_optional_user),
    service: ConnectionService = Depends(get_connection_service),
):
    """Users who teach what I want to learn and want to learn what I teach"""
    result = service.get_connections(
        current_user,
        PaginationParams(page=page, limit=limit),
        search=search,
        location=location,
        skill=skill,
    )
    return success_response("Connections retrieved successfully", result)
