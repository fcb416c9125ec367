# src/pm_order/application/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from src.pm_ledger.domain.models import LimitOrder
from src.pm_matching.domain.models import FillResult, MarketOrderResult


class PlaceLimitOrderRequest(BaseModel):
    market_id: str = Field(..., min_length=1)
    market_name: str = ""
    order_type: Literal["BUY", "SELL"]
    shares: Decimal = Field(..., gt=0)
    limit_price: Decimal = Field(..., gt=0, lt=1)

    @field_validator("market_id")
    @classmethod
    def no_whitespace(cls, v: str) -> str:
        if v != v.strip() or " " in v:
            raise ValueError("market_id must not contain whitespace")
        return v


class MarketOrderRequest(BaseModel):
    market_id: str = Field(..., min_length=1)
    market_name: str = ""
    direction: Literal["BUY", "SELL"]
    shares: Decimal = Field(..., gt=0)


class OrderResponse(BaseModel):
    id: str
    market_id: str
    market_name: str
    order_type: str
    shares: Decimal
    limit_price: Decimal
    escrowed_amount: Decimal
    status: str
    created_at: datetime | None = None
    filled_at: datetime | None = None

    @classmethod
    def from_domain(cls, order: LimitOrder) -> "OrderResponse":
        return cls(
            id=order.id,
            market_id=order.market_id,
            market_name=order.market_name,
            order_type=order.order_type,
            shares=order.shares,
            limit_price=order.limit_price,
            escrowed_amount=order.escrowed_amount,
            status=order.status,
            created_at=order.created_at,
            filled_at=order.filled_at,
        )


class CancelOrderResponse(BaseModel):
    order_id: str
    cancelled: bool
    status: str
    refunded_amount: Decimal


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    total: int


class LockedSharesResponse(BaseModel):
    market_id: str
    held_shares: Decimal
    locked_shares: Decimal
    available_shares: Decimal


class FillResponse(BaseModel):
    order_id: str
    price: Decimal | None
    amount: Decimal
    refund: Decimal

    @classmethod
    def from_result(cls, result: FillResult) -> "FillResponse":
        return cls(
            order_id=result.order_id,
            price=result.price,
            amount=result.amount,
            refund=result.refund,
        )


class MarketOrderResponse(BaseModel):
    market_id: str
    direction: str
    shares: Decimal
    price: Decimal
    total_amount: Decimal
    balance_after: Decimal
    transaction_id: int | None
    position_shares: Decimal
    position_avg_entry_price: Decimal | None
    limit_fills: list[FillResponse]

    @classmethod
    def from_result(
        cls, result: MarketOrderResult, fills: list[FillResult]
    ) -> "MarketOrderResponse":
        pos = result.position
        return cls(
            market_id=result.market_id,
            direction=result.direction,
            shares=result.shares,
            price=result.price,
            total_amount=result.total_amount,
            balance_after=result.balance_after,
            transaction_id=result.transaction_id,
            position_shares=pos.shares if pos else Decimal("0"),
            position_avg_entry_price=pos.avg_entry_price if pos else None,
            limit_fills=[FillResponse.from_result(f) for f in fills if f.filled],
        )
