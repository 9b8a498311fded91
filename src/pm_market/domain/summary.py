"""Market summary — aggregate view of one period's AMM state."""

from dataclasses import replace

from src.pm_market.domain.models import CandidateShare, MarketSummary
from src.pm_market.domain.pricing import PricingEngine, total_invested
from src.pm_period.domain.models import MarketPeriod


def summarize_market(
    period: MarketPeriod,
    shares: list[CandidateShare],
    active_traders: int,
    pricing: PricingEngine | None = None,
) -> MarketSummary:
    pricing = pricing or PricingEngine()
    fresh = pricing.with_probabilities(shares)
    volume = total_invested(fresh)

    most_popular = None
    current_favorite = None
    if fresh:
        # max() keeps the first candidate on ties
        most_popular = max(fresh, key=lambda s: s.total_invested).candidate_id
        current_favorite = max(fresh, key=lambda s: s.probability).candidate_id

    return MarketSummary(
        period=replace(period, total_volume=volume),
        shares=fresh,
        total_volume=volume,
        total_shares=sum(s.total_shares for s in fresh),
        active_traders=active_traders,
        most_popular=most_popular,
        current_favorite=current_favorite,
        probabilities={s.candidate_id: s.probability for s in fresh},
    )
