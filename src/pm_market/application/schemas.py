"""Pydantic schemas for pm_market API responses.

Amounts are PILLS floats; every amount ships with a *_display string built by
pm_common.numeric so clients do not re-implement the formatting rules.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from src.pm_common.numeric import format_pills, format_probability, format_share_price
from src.pm_market.domain.models import CandidateShare, MarketSummary
from src.pm_period.domain.clock import time_until_end
from src.pm_period.domain.models import MarketPeriod

# ---------------------------------------------------------------------------
# Period
# ---------------------------------------------------------------------------


class MarketPeriodOut(BaseModel):
    id: str
    epoch_number: int
    start_time: datetime
    end_time: datetime
    is_active: bool
    is_resolved: bool
    winner: str | None
    total_volume: float
    time_remaining: str

    @classmethod
    def from_domain(cls, p: MarketPeriod, now: datetime) -> "MarketPeriodOut":
        return cls(
            id=p.id,
            epoch_number=p.epoch_number,
            start_time=p.start_time,
            end_time=p.end_time,
            is_active=p.is_active,
            is_resolved=p.is_resolved,
            winner=p.winner,
            total_volume=p.total_volume,
            time_remaining=time_until_end(p, now),
        )


# ---------------------------------------------------------------------------
# Candidate share
# ---------------------------------------------------------------------------


class CandidateShareOut(BaseModel):
    candidate_id: str
    price_per_share: float
    price_display: str
    total_shares: float
    total_invested: float
    total_invested_display: str
    probability: float
    probability_display: str
    last_updated: datetime | None

    @classmethod
    def from_domain(cls, s: CandidateShare) -> "CandidateShareOut":
        return cls(
            candidate_id=s.candidate_id,
            price_per_share=s.price_per_share,
            price_display=format_share_price(s.price_per_share),
            total_shares=s.total_shares,
            total_invested=s.total_invested,
            total_invested_display=format_pills(s.total_invested),
            probability=s.probability,
            probability_display=format_probability(s.probability),
            last_updated=s.last_updated,
        )


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


class MarketSummaryResponse(BaseModel):
    period: MarketPeriodOut
    candidates: list[CandidateShareOut]
    total_volume: float
    total_volume_display: str
    total_shares: float
    active_traders: int
    most_popular: str | None
    current_favorite: str | None

    @classmethod
    def from_domain(cls, m: MarketSummary, now: datetime) -> "MarketSummaryResponse":
        return cls(
            period=MarketPeriodOut.from_domain(m.period, now),
            candidates=[CandidateShareOut.from_domain(s) for s in m.shares],
            total_volume=m.total_volume,
            total_volume_display=format_pills(m.total_volume),
            total_shares=m.total_shares,
            active_traders=m.active_traders,
            most_popular=m.most_popular,
            current_favorite=m.current_favorite,
        )


# ---------------------------------------------------------------------------
# Quote (price preview, no state change)
# ---------------------------------------------------------------------------


class QuoteResponse(BaseModel):
    period_id: str
    candidate_id: str
    side: Literal["buy", "sell"]
    amount: float           # PILLS for buy, shares for sell
    current_price: float
    new_price: float
    shares: float           # shares received (buy) or sold (sell)
    value: float            # PILLS paid (buy) or received (sell)
