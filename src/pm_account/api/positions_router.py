"""Positions REST API — 2 endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends

from src.pm_account.api.router import get_account_service
from src.pm_account.application.service import AccountApplicationService
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_current_user
from src.pm_ledger.domain.models import User

router = APIRouter(prefix="/positions", tags=["positions"])


@router.get("")
async def list_positions(
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[AccountApplicationService, Depends(get_account_service)],
) -> ApiResponse:
    return success_response(await service.list_positions(current_user.id))


@router.get("/{market_id}")
async def get_position(
    market_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[AccountApplicationService, Depends(get_account_service)],
) -> ApiResponse:
    return success_response(await service.get_position(current_user.id, market_id))
