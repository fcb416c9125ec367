"""Decimal arithmetic for play-money balances and probability prices.

Money is quantized to two places at every computation boundary (escrow, fill
cost, refund, proceeds), never deferred to display. No float anywhere.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0")
ONE = Decimal("1")


def round2(value: Decimal) -> Decimal:
    """Quantize to cents, half away from zero: 7.005 -> 7.01."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def validate_limit_price(price: Decimal) -> None:
    """Limit prices are probabilities strictly inside (0, 1)."""
    if not (ZERO < price < ONE):
        raise ValueError(f"Limit price must be between 0 and 1 exclusive, got {price}")


def notional(shares: Decimal, price: Decimal) -> Decimal:
    """round2(shares x price) — the one formula for escrow, cost and proceeds."""
    return round2(shares * price)


def money_to_display(amount: Decimal) -> str:
    """Format money: Decimal('1500') -> '$1,500.00', Decimal('-12') -> '-$12.00'."""
    amount = round2(amount)
    if amount < 0:
        return f"-${-amount:,.2f}"
    return f"${amount:,.2f}"
