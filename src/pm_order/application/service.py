# src/pm_order/application/service.py
"""Order use cases — limit placement/cancel/listing and immediate market orders."""

import logging
from collections.abc import Sequence

from src.pm_common.enums import ACTIVE_ORDER_STATUSES, OrderStatus
from src.pm_common.errors import InvalidOrderError
from src.pm_matching.application.service import EngineServices
from src.pm_matching.domain.models import FillResult
from src.pm_order.application.schemas import (
    CancelOrderResponse,
    LockedSharesResponse,
    MarketOrderRequest,
    MarketOrderResponse,
    OrderListResponse,
    OrderResponse,
    PlaceLimitOrderRequest,
)

logger = logging.getLogger(__name__)

ALL_STATUSES = "ALL"


def parse_status_filter(status: str | None) -> Sequence[str] | None:
    """None → active orders (PENDING + FILLED); "ALL" → no filter; else one status."""
    if status is None:
        return ACTIVE_ORDER_STATUSES
    if status.upper() == ALL_STATUSES:
        return None
    try:
        return [OrderStatus(status.upper()).value]
    except ValueError:
        raise InvalidOrderError(f"unknown status filter {status!r}") from None


async def place_limit_order(
    req: PlaceLimitOrderRequest, user_id: str, services: EngineServices
) -> OrderResponse:
    order = await services.order_book.place_limit(
        user_id,
        req.market_id,
        req.market_name or req.market_id,
        req.order_type,
        req.shares,
        req.limit_price,
    )
    return OrderResponse.from_domain(order)


async def cancel_order(
    order_id: str, user_id: str, services: EngineServices
) -> CancelOrderResponse:
    result = await services.order_book.cancel(user_id, order_id)
    return CancelOrderResponse(
        order_id=result.order_id,
        cancelled=result.cancelled,
        status=result.status,
        refunded_amount=result.refunded_amount,
    )


async def list_orders(
    user_id: str,
    status: str | None,
    market_id: str | None,
    services: EngineServices,
) -> OrderListResponse:
    orders = await services.order_book.list_orders(
        user_id, parse_status_filter(status), market_id
    )
    return OrderListResponse(
        items=[OrderResponse.from_domain(o) for o in orders], total=len(orders)
    )


async def get_order(order_id: str, user_id: str, services: EngineServices) -> OrderResponse:
    return OrderResponse.from_domain(await services.order_book.get_owned(user_id, order_id))


async def locked_shares(
    market_id: str, user_id: str, services: EngineServices
) -> LockedSharesResponse:
    book = services.order_book
    held = await services.positions.shares_held(user_id, market_id)
    locked = await book.locked_shares(user_id, market_id)
    return LockedSharesResponse(
        market_id=market_id,
        held_shares=held,
        locked_shares=locked,
        available_shares=await book.available_shares(user_id, market_id),
    )


async def place_market_order(
    req: MarketOrderRequest, user_id: str, services: EngineServices
) -> MarketOrderResponse:
    result = await services.market_orders.execute(
        user_id, req.market_id, req.market_name or req.market_id, req.direction, req.shares
    )
    # the trade is booked; the follow-up evaluation of this user's resting orders
    # is best-effort and never turns a booked trade into an error response
    fills: list[FillResult] = []
    try:
        fills = await services.scheduler.run_once(user_id)
    except Exception:
        logger.exception("post-trade limit evaluation for %s failed", user_id)
    return MarketOrderResponse.from_result(result, fills)
