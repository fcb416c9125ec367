"""Trade booking shared by limit-order fills and immediate market orders.

Both order styles go through book_buy / book_sell so the transaction log and
position arithmetic cannot drift apart between them. Cash for a BUY is
handled by the caller (escrow refund or direct debit); a SELL credits its own
proceeds.
"""

from decimal import Decimal

from src.pm_account.domain.balance import BalanceBook
from src.pm_account.domain.position_ledger import PositionLedger
from src.pm_common.enums import ActionType, OrderType
from src.pm_common.money import notional
from src.pm_ledger.domain.models import Transaction
from src.pm_ledger.domain.store import LedgerStoreProtocol


class TradeSettler:
    def __init__(
        self,
        store: LedgerStoreProtocol,
        balances: BalanceBook,
        positions: PositionLedger,
    ) -> None:
        self._store = store
        self._balances = balances
        self._positions = positions

    async def book_buy(
        self,
        user_id: str,
        market_id: str,
        market_name: str,
        shares: Decimal,
        price: Decimal,
        cost: Decimal,
    ) -> Transaction:
        tx = await self._store.append_transaction(
            Transaction(
                user_id=user_id,
                market_id=market_id,
                market_name=market_name,
                action_type=ActionType.BUY.value,
                shares=shares,
                price_per_share=price,
                total_amount=cost,
            )
        )
        await self._positions.apply_fill(
            user_id, market_id, market_name, OrderType.BUY.value, shares, price
        )
        return tx

    async def book_sell(
        self,
        user_id: str,
        market_id: str,
        market_name: str,
        shares: Decimal,
        price: Decimal,
        clamp: bool = False,
    ) -> tuple[Transaction, Decimal]:
        """Reduce the position first so a rejected oversell never pays out.

        With clamp (a limit SELL whose fill is already committed) the position
        is closed out instead of rejecting, and the proceeds are still paid.
        """
        proceeds = notional(shares, price)
        await self._positions.apply_fill(
            user_id, market_id, market_name, OrderType.SELL.value, shares, price, clamp=clamp
        )
        await self._balances.credit(user_id, proceeds)
        tx = await self._store.append_transaction(
            Transaction(
                user_id=user_id,
                market_id=market_id,
                market_name=market_name,
                action_type=ActionType.SELL.value,
                shares=shares,
                price_per_share=price,
                total_amount=proceeds,
            )
        )
        return tx, proceeds
