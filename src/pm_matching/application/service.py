"""Engine wiring — one set of collaborators per process.

Built once in the FastAPI lifespan (or directly by tests) and fetched by the
routers through get_services().
"""

from dataclasses import dataclass

from src.pm_account.domain.balance import BalanceBook
from src.pm_account.domain.position_ledger import PositionLedger
from src.pm_common.errors import InternalError
from src.pm_ledger.domain.store import LedgerStoreProtocol
from src.pm_market.domain.feed import PriceFeedProtocol
from src.pm_matching.engine.fill_engine import FillEngine
from src.pm_matching.engine.market_order import MarketOrderExecutor
from src.pm_matching.engine.scheduler import FillScheduler
from src.pm_matching.engine.settlement import TradeSettler
from src.pm_order.domain.escrow import EscrowManager
from src.pm_order.domain.order_book import OrderBook


@dataclass
class EngineServices:
    store: LedgerStoreProtocol
    feed: PriceFeedProtocol
    balances: BalanceBook
    positions: PositionLedger
    escrow: EscrowManager
    order_book: OrderBook
    fill_engine: FillEngine
    market_orders: MarketOrderExecutor
    scheduler: FillScheduler


def build_services(
    store: LedgerStoreProtocol,
    feed: PriceFeedProtocol,
    poll_interval_seconds: float = 5.0,
    balance_write_retries: int = 5,
) -> EngineServices:
    balances = BalanceBook(store, max_retries=balance_write_retries)
    positions = PositionLedger(store)
    escrow = EscrowManager(store, balances)
    order_book = OrderBook(store, escrow, positions)
    settler = TradeSettler(store, balances, positions)
    fill_engine = FillEngine(store, order_book, balances, positions, settler)
    return EngineServices(
        store=store,
        feed=feed,
        balances=balances,
        positions=positions,
        escrow=escrow,
        order_book=order_book,
        fill_engine=fill_engine,
        market_orders=MarketOrderExecutor(feed, balances, positions, settler),
        scheduler=FillScheduler(fill_engine, order_book, feed, poll_interval_seconds),
    )


_services: EngineServices | None = None


def init_services(services: EngineServices | None) -> None:
    global _services  # noqa: PLW0603
    _services = services


def get_services() -> EngineServices:
    if _services is None:
        raise InternalError("Engine services are not initialised")
    return _services
