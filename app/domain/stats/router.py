"""Stats router - Public community highlights"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...shared.responses import success_response
from .service import StatsService

router = APIRouter(prefix="/stats", tags=["Stats"])


def get_stats_service(db: Session = Depends(get_db)) -> StatsService:
    """Dependency injection for StatsService"""
    return StatsService(db)


@router.get("/community-highlights")
async def get_community_highlights(service: StatsService = Depends(get_stats_service)):
    return success_response("Stats retrieved successfully", service.get_community_highlights())
