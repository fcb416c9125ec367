"""Result objects produced by the fill engine and market-order execution."""

from dataclasses import dataclass
from decimal import Decimal

from src.pm_common.enums import FillOutcome
from src.pm_common.money import ZERO
from src.pm_ledger.domain.models import Position


@dataclass
class FillResult:
    order_id: str
    outcome: FillOutcome
    price: Decimal | None = None
    amount: Decimal = ZERO          # fill cost for BUY, proceeds for SELL
    refund: Decimal = ZERO          # unused escrow returned on a BUY fill
    transaction_id: int | None = None
    error: str | None = None

    @property
    def filled(self) -> bool:
        return self.outcome is FillOutcome.FILLED


@dataclass
class MarketOrderResult:
    market_id: str
    direction: str
    shares: Decimal
    price: Decimal
    total_amount: Decimal           # cost for BUY, proceeds for SELL
    balance_after: Decimal
    transaction_id: int | None
    position: Position | None       # None once a SELL closes the position
