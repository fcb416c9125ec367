"""FillScheduler — periodic price polling that drives the FillEngine.

start() spawns exactly one asyncio task; stop() cancels it and waits for it
to finish, so shutdown never leaves a tick half-run in the background.
Each tick: collect PENDING orders -> fetch prices for their markets ->
FillEngine.evaluate. A failed tick is logged and the next one runs on schedule.
"""

import asyncio
import contextlib
import logging

from src.pm_market.domain.feed import PriceFeedProtocol
from src.pm_matching.domain.models import FillResult
from src.pm_matching.engine.fill_engine import FillEngine
from src.pm_order.domain.order_book import OrderBook

logger = logging.getLogger(__name__)


class FillScheduler:
    def __init__(
        self,
        engine: FillEngine,
        order_book: OrderBook,
        feed: PriceFeedProtocol,
        interval_seconds: float = 5.0,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._engine = engine
        self._order_book = order_book
        self._feed = feed
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="fill-scheduler")
        logger.info("fill scheduler started (every %.1fs)", self._interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("fill scheduler stopped")

    async def run_once(self, user_id: str | None = None) -> list[FillResult]:
        """One evaluation pass; user_id=None covers every user's PENDING orders."""
        pending = await self._order_book.pending_orders(user_id)
        if not pending:
            return []
        prices = await self._feed.get_prices({o.market_id for o in pending})
        return await self._engine.evaluate(prices, orders=pending)

    async def _run(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception:
                logger.exception("fill tick failed")
            await asyncio.sleep(self._interval)
