"""BalanceBook — every balance mutation in the system goes through here.

The ledger contract exposes balance as read + overwrite. A plain overwrite lets
two concurrent trades for one user lose an update, so each mutation is a
read -> compute -> conditional write on the value just read, retried a bounded
number of times. The new amount is rounded to cents before it is written.
"""

import logging
from decimal import Decimal

from src.pm_common.errors import (
    InsufficientFundsError,
    StoreWriteFailureError,
    UserNotFoundError,
)
from src.pm_common.money import ZERO, round2
from src.pm_ledger.domain.store import LedgerStoreProtocol

logger = logging.getLogger(__name__)


class BalanceBook:
    def __init__(self, store: LedgerStoreProtocol, max_retries: int = 5) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self._store = store
        self._max_retries = max_retries

    async def read(self, user_id: str) -> Decimal:
        return await self._store.read_balance(user_id)

    async def credit(self, user_id: str, amount: Decimal) -> Decimal:
        """Add amount (>= 0); returns the new balance."""
        if amount < ZERO:
            raise ValueError(f"credit amount must be >= 0, got {amount}")
        return await self._apply(user_id, amount)

    async def debit(self, user_id: str, amount: Decimal) -> Decimal:
        """Subtract amount (>= 0); InsufficientFundsError if it would go negative."""
        if amount < ZERO:
            raise ValueError(f"debit amount must be >= 0, got {amount}")
        return await self._apply(user_id, -amount)

    async def _apply(self, user_id: str, delta: Decimal) -> Decimal:
        for attempt in range(1, self._max_retries + 1):
            current = await self._store.read_balance(user_id)
            new_amount = round2(current + delta)
            if new_amount < ZERO:
                raise InsufficientFundsError(-delta, current)
            if delta == ZERO:
                return new_amount
            affected = await self._store.write_balance(
                user_id, new_amount, expected_amount=current
            )
            if affected == 1:
                return new_amount
            if await self._store.get_user(user_id) is None:
                raise UserNotFoundError(user_id)
            logger.debug(
                "balance write for %s lost a race (attempt %d/%d)",
                user_id, attempt, self._max_retries,
            )
        raise StoreWriteFailureError(
            f"balance for {user_id} changed concurrently {self._max_retries} times"
        )
