"""LedgerStore Protocol — the persistence contract the engine is written against.

Every method is one short, self-contained store call; there is no caller-owned
transaction spanning several calls. The only atomic read-modify-write the
engine relies on is `transition_order_status` (single-row compare-and-set).

Unit tests inject InMemoryLedgerStore or a mock conforming to this Protocol.
"""

from collections.abc import Mapping, Sequence
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from src.pm_ledger.domain.models import LimitOrder, Position, Transaction, User


class LedgerStoreProtocol(Protocol):
    # --- users / balances ---

    async def create_user(
        self, user_id: str, display_name: str | None, balance: Decimal
    ) -> User: ...

    async def get_user(self, user_id: str) -> User | None: ...

    async def list_users(self) -> list[User]: ...

    async def read_balance(self, user_id: str) -> Decimal: ...

    async def write_balance(
        self, user_id: str, new_amount: Decimal, expected_amount: Decimal | None = None
    ) -> int:
        """Overwrite the balance; when expected_amount is given, only if it still matches.

        Returns affected row count (0 = lost the race or unknown user).
        """
        ...

    # --- orders ---

    async def insert_order(self, order: LimitOrder) -> LimitOrder: ...

    async def get_order(self, order_id: str) -> LimitOrder | None: ...

    async def list_orders(
        self,
        user_id: str | None,
        statuses: Sequence[str] | None = None,
        market_id: str | None = None,
    ) -> list[LimitOrder]:
        """Newest first. user_id=None lists every user's orders (fill sweep)."""
        ...

    async def transition_order_status(
        self,
        order_id: str,
        expected_status: str,
        new_status: str,
        extra_fields: Mapping[str, datetime | None] | None = None,
    ) -> int:
        """Atomic compare-and-set on one order row. Returns affected row count (0 or 1)."""
        ...

    # --- positions ---

    async def get_position(self, user_id: str, market_id: str) -> Position | None: ...

    async def list_positions(self, user_id: str | None) -> list[Position]: ...

    async def upsert_position(
        self,
        user_id: str,
        market_id: str,
        market_name: str,
        shares: Decimal,
        avg_entry_price: Decimal,
    ) -> Position: ...

    async def delete_position(self, user_id: str, market_id: str) -> None: ...

    # --- transaction log ---

    async def append_transaction(self, record: Transaction) -> Transaction: ...

    async def list_transactions(self, user_id: str, limit: int) -> list[Transaction]: ...
