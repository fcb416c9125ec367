# src/pm_order/api/router.py
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.pm_gateway.auth.dependencies import get_current_user
from src.pm_ledger.domain.models import User
from src.pm_matching.application.service import EngineServices, get_services
from src.pm_order.application import service as svc
from src.pm_order.application.schemas import (
    CancelOrderResponse,
    LockedSharesResponse,
    MarketOrderRequest,
    MarketOrderResponse,
    OrderListResponse,
    OrderResponse,
    PlaceLimitOrderRequest,
)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/limit", response_model=OrderResponse, status_code=201)
async def place_limit_order(
    req: PlaceLimitOrderRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    services: Annotated[EngineServices, Depends(get_services)],
) -> OrderResponse:
    return await svc.place_limit_order(req, current_user.id, services)


@router.post("/market", response_model=MarketOrderResponse)
async def place_market_order(
    req: MarketOrderRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    services: Annotated[EngineServices, Depends(get_services)],
) -> MarketOrderResponse:
    return await svc.place_market_order(req, current_user.id, services)


@router.post("/{order_id}/cancel", response_model=CancelOrderResponse)
async def cancel_order(
    order_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    services: Annotated[EngineServices, Depends(get_services)],
) -> CancelOrderResponse:
    return await svc.cancel_order(order_id, current_user.id, services)


@router.get("", response_model=OrderListResponse)
async def list_orders(
    current_user: Annotated[User, Depends(get_current_user)],
    services: Annotated[EngineServices, Depends(get_services)],
    market_id: str | None = Query(None, description="Filter by market ID"),
    status: str | None = Query(
        None, description="PENDING / FILLED / CANCELLED / ALL (default: PENDING + FILLED)"
    ),
) -> OrderListResponse:
    return await svc.list_orders(current_user.id, status, market_id, services)


@router.get("/locked-shares/{market_id}", response_model=LockedSharesResponse)
async def get_locked_shares(
    market_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    services: Annotated[EngineServices, Depends(get_services)],
) -> LockedSharesResponse:
    return await svc.locked_shares(market_id, current_user.id, services)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    services: Annotated[EngineServices, Depends(get_services)],
) -> OrderResponse:
    return await svc.get_order(order_id, current_user.id, services)
