"""Order-book value objects — pure dataclasses.

The LimitOrder row itself lives in pm_ledger; these describe results of
order-book operations.
"""

from dataclasses import dataclass
from decimal import Decimal

from src.pm_common.money import ZERO


@dataclass
class CancelResult:
    order_id: str
    cancelled: bool          # False: the order was already FILLED/CANCELLED (lost race)
    status: str              # status observed after the attempt
    refunded_amount: Decimal = ZERO
