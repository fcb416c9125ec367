"""pm_account REST API — balance and transaction log, JWT required."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.pm_account.application.service import AccountApplicationService
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_current_user
from src.pm_ledger.domain.models import User
from src.pm_matching.application.service import get_services

router = APIRouter(prefix="/account", tags=["account"])


def get_account_service() -> AccountApplicationService:
    return AccountApplicationService(get_services())


@router.get("/balance")
async def get_balance(
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[AccountApplicationService, Depends(get_account_service)],
    request: Request,
) -> ApiResponse:
    data = await service.get_balance(current_user)
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/transactions")
async def list_transactions(
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[AccountApplicationService, Depends(get_account_service)],
    request: Request,
    limit: int = Query(50, ge=1, le=200, description="Most recent N transactions"),
) -> ApiResponse:
    data = await service.list_transactions(current_user.id, limit)
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
