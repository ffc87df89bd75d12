"""Exchange request router - FastAPI endpoints for exchange requests"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...schemas import PaginationParams
from ...shared.responses import success_response
from .schemas import ExchangeRequestCreate
from .service import ExchangeRequestService, serialize_exchange_request

router = APIRouter(prefix="/exchange-requests", tags=["Exchange Requests"])


def get_exchange_request_service(db: Session = Depends(get_db)) -> ExchangeRequestService:
    """Dependency injection for ExchangeRequestService"""
    return ExchangeRequestService(db)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_exchange_request(
    data: ExchangeRequestCreate,
    current_user: User = Depends(get_current_user),
    service: ExchangeRequestService = Depends(get_exchange_request_service),
):
    exchange_request = await service.create_exchange_request(current_user, data)
    return success_response(
        "Exchange request created successfully", serialize_exchange_request(exchange_request)
    )


@router.get("")
async def get_exchange_requests(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[Literal["pending", "accepted", "declined"]] = Query(None),
    current_user: User = Depends(get_current_user),
    service: ExchangeRequestService = Depends(get_exchange_request_service),
):
    result = service.get_exchange_requests(
        current_user, PaginationParams(page=page, limit=limit), status
    )
    return success_response("Exchange requests retrieved successfully", result)


@router.patch("/{exchange_request_id}/accept")
async def accept_exchange_request(
    exchange_request_id: int,
    current_user: User = Depends(get_current_user),
    service: ExchangeRequestService = Depends(get_exchange_request_service),
):
    exchange_request = await service.accept_exchange_request(exchange_request_id, current_user)
    return success_response(
        "Exchange request accepted successfully", serialize_exchange_request(exchange_request)
    )


@router.patch("/{exchange_request_id}/decline")
async def decline_exchange_request(
    exchange_request_id: int,
    current_user: User = Depends(get_current_user),
    service: ExchangeRequestService = Depends(get_exchange_request_service),
):
    exchange_request = service.decline_exchange_request(exchange_request_id, current_user)
    return success_response(
        "Exchange request declined successfully", serialize_exchange_request(exchange_request)
    )
