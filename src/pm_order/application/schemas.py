from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from src.pm_order.domain.models import TradeOrder
from src.pm_position.application.schemas import PositionOut


class _OrderRequest(BaseModel):
    user_id: str
    candidate_id: str
    # Defaults to the current period; any other period is closed for trading.
    period_id: str | None = None

    @field_validator("user_id", "candidate_id")
    @classmethod
    def no_whitespace(cls, v: str) -> str:
        if not v or v != v.strip() or " " in v:
            raise ValueError("identifiers must not contain whitespace")
        return v


class BuyRequest(_OrderRequest):
    amount: float = Field(allow_inf_nan=False)  # PILLS to bet


class SellRequest(_OrderRequest):
    shares: float = Field(allow_inf_nan=False)


class OrderResponse(BaseModel):
    id: str
    user_id: str
    period_id: str
    candidate_id: str
    side: str
    quantity: float
    price_per_share: float
    total_value: float
    status: str
    failure_reason: str | None = None
    created_at: datetime | None = None
    filled_at: datetime | None = None

    @classmethod
    def from_domain(cls, o: TradeOrder) -> "OrderResponse":
        return cls(
            id=o.id,
            user_id=o.user_id,
            period_id=o.period_id,
            candidate_id=o.candidate_id,
            side=o.side,
            quantity=o.quantity,
            price_per_share=o.price_per_share,
            total_value=o.total_value,
            status=o.status,
            failure_reason=o.failure_reason,
            created_at=o.created_at,
            filled_at=o.filled_at,
        )


class OrderFillResponse(BaseModel):
    order: OrderResponse
    new_price: float
    probability: float
    shares_received: float | None = None  # buy
    value_received: float | None = None   # sell
    position: PositionOut


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
