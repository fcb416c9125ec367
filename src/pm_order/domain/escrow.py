"""EscrowManager — reserves and releases cash against BUY limit orders.

Placement is two writes (debit balance, insert order). If the insert fails
after the debit, the debit is refunded before the failure propagates, so a
caller never observes escrow without an order holding it.
"""

import logging
from decimal import Decimal

from src.pm_account.domain.balance import BalanceBook
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import OrderStatus, OrderType
from src.pm_common.errors import (
    AppError,
    InsufficientFundsError,
    InvalidOrderError,
    OrderNotPendingError,
    StoreWriteFailureError,
)
from src.pm_common.id_generator import generate_id
from src.pm_common.money import ZERO, notional, validate_limit_price
from src.pm_ledger.domain.models import LimitOrder
from src.pm_ledger.domain.store import LedgerStoreProtocol

logger = logging.getLogger(__name__)


def _validate(shares: Decimal, limit_price: Decimal) -> None:
    if shares <= ZERO:
        raise InvalidOrderError(f"shares must be positive, got {shares}")
    try:
        validate_limit_price(limit_price)
    except ValueError as exc:
        raise InvalidOrderError(str(exc)) from exc


class EscrowManager:
    def __init__(self, store: LedgerStoreProtocol, balances: BalanceBook) -> None:
        self._store = store
        self._balances = balances

    async def place_buy_limit(
        self,
        user_id: str,
        market_id: str,
        market_name: str,
        shares: Decimal,
        limit_price: Decimal,
    ) -> LimitOrder:
        _validate(shares, limit_price)
        escrow = notional(shares, limit_price)

        balance = await self._balances.read(user_id)
        if balance < escrow:
            raise InsufficientFundsError(escrow, balance)
        await self._balances.debit(user_id, escrow)

        order = LimitOrder(
            id=generate_id(),
            user_id=user_id,
            market_id=market_id,
            market_name=market_name,
            order_type=OrderType.BUY.value,
            shares=shares,
            limit_price=limit_price,
            escrowed_amount=escrow,
            status=OrderStatus.PENDING.value,
            created_at=utc_now(),
        )
        try:
            saved = await self._store.insert_order(order)
        except Exception as exc:
            logger.error("order %s insert failed after escrow debit; refunding %s", order.id, escrow)
            await self._compensate_debit(user_id, escrow, order.id)
            if isinstance(exc, AppError):
                raise
            raise StoreWriteFailureError(f"order insert failed: {exc}") from exc

        logger.info(
            "BUY limit %s placed: %s %s @ %s, escrow %s",
            saved.id, shares, market_id, limit_price, escrow,
        )
        return saved

    async def _compensate_debit(self, user_id: str, amount: Decimal, order_id: str) -> None:
        try:
            await self._balances.credit(user_id, amount)
        except AppError:
            # the original failure is what the caller sees; this one needs a human
            logger.exception(
                "escrow refund of %s for failed order %s (user %s) did not apply",
                amount, order_id, user_id,
            )

    async def place_sell_limit(
        self,
        user_id: str,
        market_id: str,
        market_name: str,
        shares: Decimal,
        limit_price: Decimal,
    ) -> LimitOrder:
        """No cash moves; the caller has already checked available shares."""
        _validate(shares, limit_price)
        order = LimitOrder(
            id=generate_id(),
            user_id=user_id,
            market_id=market_id,
            market_name=market_name,
            order_type=OrderType.SELL.value,
            shares=shares,
            limit_price=limit_price,
            escrowed_amount=ZERO,
            status=OrderStatus.PENDING.value,
            created_at=utc_now(),
        )
        saved = await self._store.insert_order(order)
        logger.info("SELL limit %s placed: %s %s @ %s", saved.id, shares, market_id, limit_price)
        return saved

    async def cancel_order(self, order: LimitOrder) -> Decimal:
        """PENDING -> CANCELLED via the status CAS, then release escrow.

        Returns the refunded amount. Raises OrderNotPendingError when the CAS
        finds the order already terminal; nothing is refunded in that case.
        """
        affected = await self._store.transition_order_status(
            order.id, OrderStatus.PENDING.value, OrderStatus.CANCELLED.value
        )
        if affected == 0:
            current = await self._store.get_order(order.id)
            raise OrderNotPendingError(order.id, current.status if current else "MISSING")

        refunded = ZERO
        if order.is_buy and order.escrowed_amount > ZERO:
            await self._balances.credit(order.user_id, order.escrowed_amount)
            refunded = order.escrowed_amount
        logger.info("order %s cancelled, refunded %s", order.id, refunded)
        return refunded
