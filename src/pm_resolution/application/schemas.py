"""Pydantic schemas for market resolution."""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from src.pm_resolution.domain.models import MarketResolution, Payout, RankingEntry


class RankingEntryIn(BaseModel):
    candidate_id: str
    rank: int = Field(ge=1)
    pnl_sol: float = 0.0

    def to_domain(self) -> RankingEntry:
        return RankingEntry(candidate_id=self.candidate_id, rank=self.rank, pnl_sol=self.pnl_sol)


class RankingEntryOut(BaseModel):
    candidate_id: str
    rank: int
    pnl_sol: float


class ResolveRequest(BaseModel):
    final_ranking: list[RankingEntryIn]

    @model_validator(mode="after")
    def unique_entries(self) -> "ResolveRequest":
        ids = [e.candidate_id for e in self.final_ranking]
        ranks = [e.rank for e in self.final_ranking]
        if len(set(ids)) != len(ids) or len(set(ranks)) != len(ranks):
            raise ValueError("candidate ids and ranks must be unique")
        return self


class PayoutOut(BaseModel):
    user_id: str
    shares: float
    amount: float


class ResolutionResponse(BaseModel):
    period_id: str
    winner: str
    final_ranking: list[RankingEntryOut]
    payout_per_share: float
    total_winning_shares: float
    total_prize_pool: float
    house_fee: float
    resolved_at: datetime
    payouts: list[PayoutOut] = []

    @classmethod
    def from_domain(
        cls, r: MarketResolution, payouts: list[Payout] | None = None
    ) -> "ResolutionResponse":
        return cls(
            period_id=r.period_id,
            winner=r.winner,
            final_ranking=[
                RankingEntryOut(candidate_id=e.candidate_id, rank=e.rank, pnl_sol=e.pnl_sol)
                for e in r.final_ranking
            ],
            payout_per_share=r.payout_per_share,
            total_winning_shares=r.total_winning_shares,
            total_prize_pool=r.total_prize_pool,
            house_fee=r.house_fee,
            resolved_at=r.resolved_at,
            payouts=[
                PayoutOut(user_id=p.user_id, shares=p.shares, amount=p.amount)
                for p in payouts or []
            ],
        )
