"""MarketOrderExecutor — immediate BUY/SELL at the live price.

No PENDING period and no escrow: affordability or ownership is checked at
call time, then the trade is booked through the same TradeSettler path that
limit fills use.
"""

import logging
from decimal import Decimal

from src.pm_account.domain.balance import BalanceBook
from src.pm_account.domain.position_ledger import PositionLedger
from src.pm_common.enums import OrderType
from src.pm_common.errors import (
    AppError,
    InsufficientFundsError,
    InsufficientSharesError,
    InvalidOrderError,
    PriceUnavailableError,
    StoreWriteFailureError,
)
from src.pm_common.money import ZERO, notional
from src.pm_market.domain.feed import PriceFeedProtocol
from src.pm_matching.domain.models import MarketOrderResult
from src.pm_matching.engine.settlement import TradeSettler

logger = logging.getLogger(__name__)


class MarketOrderExecutor:
    def __init__(
        self,
        feed: PriceFeedProtocol,
        balances: BalanceBook,
        positions: PositionLedger,
        settler: TradeSettler,
    ) -> None:
        self._feed = feed
        self._balances = balances
        self._positions = positions
        self._settler = settler

    async def live_price(self, market_id: str) -> Decimal:
        prices = await self._feed.get_prices([market_id])
        price = prices.get(market_id)
        if price is None or price <= ZERO:
            raise PriceUnavailableError(market_id)
        return price

    async def _compensate_debit(self, user_id: str, amount: Decimal, market_id: str) -> None:
        try:
            await self._balances.credit(user_id, amount)
        except AppError:
            logger.exception(
                "refund of %s for failed market BUY on %s (user %s) did not apply",
                amount, market_id, user_id,
            )

    async def execute(
        self,
        user_id: str,
        market_id: str,
        market_name: str,
        direction: str,
        shares: Decimal,
    ) -> MarketOrderResult:
        if shares <= ZERO:
            raise InvalidOrderError(f"shares must be positive, got {shares}")
        if direction not in (OrderType.BUY, OrderType.SELL):
            raise InvalidOrderError(f"unknown direction {direction!r}")
        price = await self.live_price(market_id)

        if direction == OrderType.BUY:
            total = notional(shares, price)
            balance = await self._balances.read(user_id)
            if total > balance:
                raise InsufficientFundsError(total, balance)
            await self._balances.debit(user_id, total)
            try:
                tx = await self._settler.book_buy(
                    user_id, market_id, market_name, shares, price, total
                )
            except Exception as exc:
                logger.error(
                    "market BUY booking for %s on %s failed after debit; refunding %s",
                    user_id, market_id, total,
                )
                await self._compensate_debit(user_id, total, market_id)
                if isinstance(exc, AppError):
                    raise
                raise StoreWriteFailureError(f"market order booking failed: {exc}") from exc
        else:
            held = await self._positions.shares_held(user_id, market_id)
            if shares > held:
                raise InsufficientSharesError(f"{market_id}: selling {shares}, holding {held}")
            tx, total = await self._settler.book_sell(
                user_id, market_id, market_name, shares, price
            )

        logger.info(
            "market %s %s: %s %s @ %s = %s",
            direction, user_id, shares, market_id, price, total,
        )
        return MarketOrderResult(
            market_id=market_id,
            direction=OrderType(direction).value,
            shares=shares,
            price=price,
            total_amount=total,
            balance_after=await self._balances.read(user_id),
            transaction_id=tx.id,
            position=await self._positions.get(user_id, market_id),
        )
