"""OrderBook — a user's limit orders: placement, cancellation, listing.

SELL orders reserve nothing in the store. Shares already promised to the
user's other PENDING SELL orders on a market are subtracted from the position
when a new SELL is placed; that check happens here and only here.
"""

import logging
from collections.abc import Sequence
from decimal import Decimal

from src.pm_account.domain.position_ledger import PositionLedger
from src.pm_common.enums import ACTIVE_ORDER_STATUSES, OrderStatus, OrderType
from src.pm_common.errors import (
    InsufficientSharesError,
    InvalidOrderError,
    OrderNotFoundError,
    OrderNotPendingError,
)
from src.pm_common.money import ZERO
from src.pm_ledger.domain.models import LimitOrder
from src.pm_ledger.domain.store import LedgerStoreProtocol
from src.pm_order.domain.escrow import EscrowManager
from src.pm_order.domain.models import CancelResult

logger = logging.getLogger(__name__)


class OrderBook:
    def __init__(
        self,
        store: LedgerStoreProtocol,
        escrow: EscrowManager,
        positions: PositionLedger,
    ) -> None:
        self._store = store
        self._escrow = escrow
        self._positions = positions

    async def place_limit(
        self,
        user_id: str,
        market_id: str,
        market_name: str,
        order_type: str,
        shares: Decimal,
        limit_price: Decimal,
    ) -> LimitOrder:
        if order_type == OrderType.BUY:
            return await self._escrow.place_buy_limit(
                user_id, market_id, market_name, shares, limit_price
            )
        if order_type != OrderType.SELL:
            raise InvalidOrderError(f"unknown order type {order_type!r}")

        available = await self.available_shares(user_id, market_id)
        if shares > available:
            raise InsufficientSharesError(
                f"{market_id}: selling {shares}, available {available}"
            )
        return await self._escrow.place_sell_limit(
            user_id, market_id, market_name, shares, limit_price
        )

    async def cancel(self, user_id: str, order_id: str) -> CancelResult:
        order = await self.get_owned(user_id, order_id)
        if OrderStatus(order.status).is_terminal:
            return CancelResult(order_id=order.id, cancelled=False, status=order.status)
        try:
            refunded = await self._escrow.cancel_order(order)
        except OrderNotPendingError:
            # another session filled or cancelled it first
            current = await self._store.get_order(order.id)
            status = current.status if current else order.status
            logger.debug("cancel of %s lost the race, order is %s", order.id, status)
            return CancelResult(order_id=order.id, cancelled=False, status=status)
        return CancelResult(
            order_id=order.id,
            cancelled=True,
            status=OrderStatus.CANCELLED.value,
            refunded_amount=refunded,
        )

    async def get_owned(self, user_id: str, order_id: str) -> LimitOrder:
        """Orders of other users are reported as not found."""
        order = await self._store.get_order(order_id)
        if order is None or order.user_id != user_id:
            raise OrderNotFoundError(order_id)
        return order

    async def list_orders(
        self,
        user_id: str,
        statuses: Sequence[str] | None = ACTIVE_ORDER_STATUSES,
        market_id: str | None = None,
    ) -> list[LimitOrder]:
        return await self._store.list_orders(user_id, statuses, market_id)

    async def pending_orders(self, user_id: str | None = None) -> list[LimitOrder]:
        """PENDING orders of one user, or of every user when user_id is None."""
        return await self._store.list_orders(user_id, [OrderStatus.PENDING.value])

    async def locked_shares(self, user_id: str, market_id: str) -> Decimal:
        pending = await self._store.list_orders(
            user_id, [OrderStatus.PENDING.value], market_id
        )
        return sum((o.shares for o in pending if not o.is_buy), ZERO)

    async def available_shares(self, user_id: str, market_id: str) -> Decimal:
        held = await self._positions.shares_held(user_id, market_id)
        return max(held - await self.locked_shares(user_id, market_id), ZERO)
