"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class OrderType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    FILLED = "FILLED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self is not OrderStatus.PENDING


class ActionType(str, Enum):
    """Transaction log action; same values as OrderType, kept separate for the DB CHECK."""
    BUY = "BUY"
    SELL = "SELL"


class FillOutcome(str, Enum):
    """Per-order result of one Fill Engine evaluation."""
    FILLED = "FILLED"
    NOT_CROSSED = "NOT_CROSSED"
    NO_PRICE = "NO_PRICE"
    LOST_RACE = "LOST_RACE"
    IN_FLIGHT = "IN_FLIGHT"
    INSUFFICIENT_SHARES = "INSUFFICIENT_SHARES"
    ERROR = "ERROR"


# Statuses shown in the "active" order list: terminal CANCELLED rows are hidden
ACTIVE_ORDER_STATUSES: tuple[OrderStatus, ...] = (OrderStatus.PENDING, OrderStatus.FILLED)
