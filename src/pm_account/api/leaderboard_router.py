"""Leaderboard REST API — public, no authentication."""
from typing import Annotated

from fastapi import APIRouter, Depends

from src.pm_account.api.router import get_account_service
from src.pm_account.application.service import AccountApplicationService
from src.pm_common.response import ApiResponse, success_response

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get("")
async def get_leaderboard(
    service: Annotated[AccountApplicationService, Depends(get_account_service)],
) -> ApiResponse:
    return success_response(await service.leaderboard())
