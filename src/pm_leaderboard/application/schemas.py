"""Pydantic schemas for leaderboard ingestion and output.

Swap payloads arrive from two venues with different units; the `source` field
selects the model, and each model normalizes to a TradeEvent in SOL.
"""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from src.pm_common.datetime_utils import ensure_utc
from src.pm_common.enums import TradeSide
from src.pm_common.numeric import format_sol, format_usd, format_win_rate
from src.pm_leaderboard.domain.models import LeaderboardEntry, TradeEvent
from src.pm_resolution.application.schemas import RankingEntryOut

LAMPORTS_PER_SOL = 1_000_000_000


class _SwapBase(BaseModel):
    candidate_id: str
    token_mint: str
    side: TradeSide
    timestamp: datetime
    signature: str


class PumpFunSwap(_SwapBase):
    """Bonding-curve swap; amounts already in SOL."""

    source: Literal["pump_fun"] = "pump_fun"
    sol_amount: float = Field(ge=0)
    token_amount: float = Field(ge=0)

    def to_trade_event(self) -> TradeEvent:
        return TradeEvent(
            candidate_id=self.candidate_id,
            token_mint=self.token_mint,
            side=self.side.value,
            sol_amount=self.sol_amount,
            token_amount=self.token_amount,
            timestamp=ensure_utc(self.timestamp),
            signature=self.signature,
        )


class PumpAmmSwap(_SwapBase):
    """AMM pool swap; quote side reported in lamports."""

    source: Literal["pump_amm"] = "pump_amm"
    quote_amount_lamports: int = Field(ge=0)
    base_amount: float = Field(ge=0)

    def to_trade_event(self) -> TradeEvent:
        return TradeEvent(
            candidate_id=self.candidate_id,
            token_mint=self.token_mint,
            side=self.side.value,
            sol_amount=self.quote_amount_lamports / LAMPORTS_PER_SOL,
            token_amount=self.base_amount,
            timestamp=ensure_utc(self.timestamp),
            signature=self.signature,
        )


SwapEvent = Annotated[PumpFunSwap | PumpAmmSwap, Field(discriminator="source")]


class LeaderboardRequest(BaseModel):
    events: list[SwapEvent]


class LeaderboardEntryOut(BaseModel):
    rank: int
    candidate_id: str
    total_trades: int
    total_pnl_sol: float
    total_pnl_sol_display: str
    total_pnl_usd: float
    total_pnl_usd_display: str
    winning_trades: int
    losing_trades: int
    win_rate: float
    win_rate_display: str
    active_trades: int
    last_trade_at: datetime | None

    @classmethod
    def from_domain(cls, e: LeaderboardEntry) -> "LeaderboardEntryOut":
        return cls(
            rank=e.rank,
            candidate_id=e.candidate_id,
            total_trades=e.total_trades,
            total_pnl_sol=e.total_pnl_sol,
            total_pnl_sol_display=format_sol(e.total_pnl_sol),
            total_pnl_usd=e.total_pnl_usd,
            total_pnl_usd_display=format_usd(e.total_pnl_usd),
            winning_trades=e.winning_trades,
            losing_trades=e.losing_trades,
            win_rate=e.win_rate,
            win_rate_display=format_win_rate(e.win_rate),
            active_trades=e.active_trades,
            last_trade_at=e.last_trade_at,
        )


class LeaderboardResponse(BaseModel):
    period_id: str
    sol_usd: float
    entries: list[LeaderboardEntryOut]
    # ready to POST to /markets/{period_id}/resolve
    final_ranking: list[RankingEntryOut]
