"""Ledger domain models — pure dataclasses, no SQLAlchemy dependency.

Money and prices are Decimal; shares are Decimal so fractional shares stay exact.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.pm_common.enums import OrderStatus, OrderType
from src.pm_common.money import ZERO


@dataclass
class User:
    id: str
    display_name: str | None
    balance: Decimal             # 2dp, never negative
    created_at: datetime | None = None


@dataclass
class Position:
    user_id: str
    market_id: str               # may carry the "_no" suffix
    market_name: str
    shares: Decimal
    avg_entry_price: Decimal     # weighted average of purchase prices, unrounded
    updated_at: datetime | None = None

    @property
    def cost_basis(self) -> Decimal:
        return self.shares * self.avg_entry_price


@dataclass
class LimitOrder:
    id: str
    user_id: str
    market_id: str
    market_name: str
    order_type: str              # OrderType value
    shares: Decimal
    limit_price: Decimal
    escrowed_amount: Decimal = ZERO   # round2(shares * limit_price) for BUY, 0 for SELL
    status: str = OrderStatus.PENDING.value
    created_at: datetime | None = None
    filled_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == OrderStatus.PENDING

    @property
    def is_buy(self) -> bool:
        return self.order_type == OrderType.BUY

    def crosses(self, price: Decimal) -> bool:
        """BUY fills at or below the limit, SELL at or above it."""
        if self.is_buy:
            return price <= self.limit_price
        return price >= self.limit_price


@dataclass
class Transaction:
    user_id: str
    market_id: str
    market_name: str
    action_type: str             # ActionType value
    shares: Decimal
    price_per_share: Decimal
    total_amount: Decimal        # 2dp: fill cost for BUY, proceeds for SELL
    id: int | None = None        # assigned by the store
    created_at: datetime | None = None
    # NOTE: no updated_at — transactions are append-only
