"""FillEngine — settles resting limit orders against observed prices.

For every PENDING order:
  1. price the order's market (absent -> skip, retried next tick)
  2. BUY crosses at price <= limit, SELL at price >= limit
  3. PENDING -> FILLED through the store's single-row compare-and-set;
     0 rows means another evaluator already filled or cancelled it
  4. only the CAS winner settles: cash, transaction, position

Any number of engines (processes, sessions) may evaluate the same order at
once. Exactly-once settlement rests on step 3 alone; the in-flight set below
only stops this instance from racing itself. It is a transient per-order
marker: empty between passes, never persisted, never shared across engines.
"""

import logging
from collections.abc import Mapping, Sequence
from decimal import Decimal

from src.pm_account.domain.balance import BalanceBook
from src.pm_account.domain.position_ledger import PositionLedger
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import FillOutcome, OrderStatus
from src.pm_common.money import ZERO, notional, round2
from src.pm_ledger.domain.models import LimitOrder
from src.pm_ledger.domain.store import LedgerStoreProtocol
from src.pm_market.domain.models import effective_price
from src.pm_matching.domain.models import FillResult
from src.pm_matching.engine.settlement import TradeSettler
from src.pm_order.domain.order_book import OrderBook

logger = logging.getLogger(__name__)


class FillEngine:
    def __init__(
        self,
        store: LedgerStoreProtocol,
        order_book: OrderBook,
        balances: BalanceBook,
        positions: PositionLedger,
        settler: TradeSettler,
    ) -> None:
        self._store = store
        self._order_book = order_book
        self._balances = balances
        self._positions = positions
        self._settler = settler
        # order ids whose fill attempt is running right now in this instance;
        # an id is held only for one evaluate_order call and dropped in its finally
        self._in_flight: set[str] = set()

    async def evaluate(
        self,
        prices: Mapping[str, Decimal],
        user_id: str | None = None,
        orders: Sequence[LimitOrder] | None = None,
    ) -> list[FillResult]:
        """Evaluate PENDING orders (one user's, or everyone's) against a price snapshot.

        A failure on one order is logged and reported in its FillResult; the
        sweep always continues with the remaining orders.
        """
        if orders is None:
            orders = await self._order_book.pending_orders(user_id)
        snapshot = dict(prices)
        results = [await self.evaluate_order(order, snapshot) for order in orders]

        filled = sum(1 for r in results if r.filled)
        if filled:
            logger.info("fill sweep: %d of %d pending orders filled", filled, len(results))
        return results

    async def evaluate_order(
        self, order: LimitOrder, prices: Mapping[str, Decimal]
    ) -> FillResult:
        if not order.is_pending:
            return FillResult(order.id, FillOutcome.LOST_RACE)

        price = effective_price(dict(prices), order.market_id)
        if price is None:
            return FillResult(order.id, FillOutcome.NO_PRICE)
        if not order.crosses(price):
            return FillResult(order.id, FillOutcome.NOT_CROSSED, price)
        if order.id in self._in_flight:
            return FillResult(order.id, FillOutcome.IN_FLIGHT, price)

        self._in_flight.add(order.id)
        try:
            return await self._fill(order, price)
        except Exception as exc:
            logger.exception("fill of order %s at %s failed", order.id, price)
            return FillResult(order.id, FillOutcome.ERROR, price, error=str(exc))
        finally:
            self._in_flight.discard(order.id)

    async def _fill(self, order: LimitOrder, price: Decimal) -> FillResult:
        if not order.is_buy:
            held = await self._positions.shares_held(order.user_id, order.market_id)
            if held < order.shares:
                logger.warning(
                    "SELL order %s wants %s shares of %s, user %s holds %s; left PENDING",
                    order.id, order.shares, order.market_id, order.user_id, held,
                )
                return FillResult(order.id, FillOutcome.INSUFFICIENT_SHARES, price)

        affected = await self._store.transition_order_status(
            order.id,
            OrderStatus.PENDING.value,
            OrderStatus.FILLED.value,
            {"filled_at": utc_now()},
        )
        if affected == 0:
            logger.debug("order %s already left PENDING elsewhere", order.id)
            return FillResult(order.id, FillOutcome.LOST_RACE, price)

        if order.is_buy:
            return await self._settle_buy(order, price)
        return await self._settle_sell(order, price)

    async def _settle_buy(self, order: LimitOrder, price: Decimal) -> FillResult:
        fill_cost = notional(order.shares, price)
        refund = round2(order.escrowed_amount - fill_cost)
        if refund > ZERO:
            await self._balances.credit(order.user_id, refund)
        elif refund < ZERO:
            # only possible if the escrow row was written with a different limit
            logger.error(
                "order %s escrow %s below fill cost %s", order.id, order.escrowed_amount, fill_cost
            )
        tx = await self._settler.book_buy(
            order.user_id, order.market_id, order.market_name, order.shares, price, fill_cost
        )
        logger.info(
            "BUY limit %s filled: %s %s @ %s, cost %s, refund %s",
            order.id, order.shares, order.market_id, price, fill_cost, refund,
        )
        return FillResult(
            order.id,
            FillOutcome.FILLED,
            price,
            amount=fill_cost,
            refund=max(refund, ZERO),
            transaction_id=tx.id,
        )

    async def _settle_sell(self, order: LimitOrder, price: Decimal) -> FillResult:
        # the CAS is won; shares sold elsewhere since the pre-check cannot block settlement
        tx, proceeds = await self._settler.book_sell(
            order.user_id, order.market_id, order.market_name, order.shares, price, clamp=True
        )
        logger.info(
            "SELL limit %s filled: %s %s @ %s, proceeds %s",
            order.id, order.shares, order.market_id, price, proceeds,
        )
        return FillResult(
            order.id, FillOutcome.FILLED, price, amount=proceeds, transaction_id=tx.id
        )
