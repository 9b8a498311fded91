"""Resolution engine — winner-take-all settlement of a closed period.

The whole pool (sum of invested PILLS across every candidate, minus the house
fee) is split pro rata over the winning candidate's shares. Shares in any
other candidate pay nothing. No funds move here; the caller credits payouts.
"""

from collections.abc import Sequence
from datetime import datetime

from config.settings import settings
from src.pm_common.datetime_utils import utc_now
from src.pm_common.errors import CandidateNotFoundError, InvalidRankingError
from src.pm_market.domain.models import CandidateShare
from src.pm_market.domain.pricing import find_share, total_invested
from src.pm_position.domain.models import UserPosition
from src.pm_resolution.domain.models import MarketResolution, Payout, RankingEntry


def winner_from_ranking(final_ranking: Sequence[RankingEntry]) -> str:
    if not final_ranking:
        raise InvalidRankingError("final ranking is empty")
    candidate_ids = [e.candidate_id for e in final_ranking]
    if len(set(candidate_ids)) != len(candidate_ids):
        raise InvalidRankingError("a candidate appears more than once")
    ranks = [e.rank for e in final_ranking]
    if len(set(ranks)) != len(ranks):
        raise InvalidRankingError("two candidates share a rank")
    return min(final_ranking, key=lambda e: e.rank).candidate_id


class ResolutionEngine:
    def __init__(self, house_fee_bps: int | None = None) -> None:
        self._house_fee_bps = settings.HOUSE_FEE_BPS if house_fee_bps is None else house_fee_bps

    def resolve(
        self,
        period_id: str,
        winning_candidate_id: str,
        shares: list[CandidateShare],
        final_ranking: Sequence[RankingEntry],
        now: datetime | None = None,
    ) -> MarketResolution:
        try:
            winner_share = find_share(shares, winning_candidate_id)
        except CandidateNotFoundError:
            raise CandidateNotFoundError(winning_candidate_id, period_id) from None

        prize_pool = total_invested(shares)
        house_fee = prize_pool * self._house_fee_bps / 10000
        winning_shares = winner_share.total_shares
        payout_per_share = (
            (prize_pool - house_fee) / winning_shares if winning_shares > 0 else 0.0
        )

        return MarketResolution(
            period_id=period_id,
            winner=winning_candidate_id,
            final_ranking=tuple(final_ranking),
            payout_per_share=payout_per_share,
            total_winning_shares=winning_shares,
            total_prize_pool=prize_pool,
            house_fee=house_fee,
            resolved_at=now or utc_now(),
        )

    def compute_payouts(
        self, resolution: MarketResolution, positions: list[UserPosition]
    ) -> list[Payout]:
        """Per-user payout for open positions in the winning candidate."""
        payouts: list[Payout] = []
        for p in positions:
            if p.candidate_id != resolution.winner or p.shares_owned <= 0:
                continue
            payouts.append(
                Payout(
                    user_id=p.user_id,
                    shares=p.shares_owned,
                    amount=p.shares_owned * resolution.payout_per_share,
                )
            )
        return payouts
