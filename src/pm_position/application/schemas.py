"""Pydantic schemas for position / portfolio responses."""

from datetime import datetime

from pydantic import BaseModel

from src.pm_common.numeric import format_pills
from src.pm_position.domain.models import UserPortfolio, UserPosition


class PositionOut(BaseModel):
    period_id: str
    candidate_id: str
    shares_owned: float
    average_price: float
    total_invested: float
    current_value: float
    current_value_display: str
    unrealized_pnl: float
    realized_pnl: float
    is_closed: bool
    last_trade_at: datetime | None

    @classmethod
    def from_domain(cls, p: UserPosition) -> "PositionOut":
        return cls(
            period_id=p.period_id,
            candidate_id=p.candidate_id,
            shares_owned=p.shares_owned,
            average_price=p.average_price,
            total_invested=p.total_invested,
            current_value=p.current_value,
            current_value_display=format_pills(p.current_value),
            unrealized_pnl=p.unrealized_pnl,
            realized_pnl=p.realized_pnl,
            is_closed=p.is_closed,
            last_trade_at=p.last_trade_at,
        )


class PortfolioResponse(BaseModel):
    user_id: str
    pills_balance: float
    pills_balance_display: str
    positions: list[PositionOut]
    total_value: float
    total_value_display: str
    total_unrealized_pnl: float
    total_realized_pnl: float

    @classmethod
    def from_domain(cls, pf: UserPortfolio) -> "PortfolioResponse":
        return cls(
            user_id=pf.user_id,
            pills_balance=pf.pills_balance,
            pills_balance_display=format_pills(pf.pills_balance),
            positions=[PositionOut.from_domain(p) for p in pf.positions],
            total_value=pf.total_value,
            total_value_display=format_pills(pf.total_value),
            total_unrealized_pnl=pf.total_unrealized_pnl,
            total_realized_pnl=pf.total_realized_pnl,
        )
