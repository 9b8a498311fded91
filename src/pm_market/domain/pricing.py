"""Pricing engine — share price curve and softmax probabilities.

Stateless: every call takes the period's full list of CandidateShare records,
because a candidate's price depends on the investment in all candidates.

Price curve:
    share = candidate_invested / max(total_invested, 1)
    price = clamp(0.05, 0.95, 0.50 + (2 * share) ** 1.5), rounded to 4 dp

Probabilities:
    p_i = exp(5 * share_i) / sum_j exp(5 * share_j), each rounded to 4 dp
"""

import math
from dataclasses import replace

from src.pm_common.errors import CandidateNotFoundError
from src.pm_common.numeric import clamp, round_half_up
from src.pm_market.domain.models import BASE_PRICE, CandidateShare

MIN_PRICE = 0.05
MAX_PRICE = 0.95
CURVE_EXPONENT = 1.5
SOFTMAX_SCALE = 5.0


def total_invested(shares: list[CandidateShare]) -> float:
    return sum(s.total_invested for s in shares)


def find_share(shares: list[CandidateShare], candidate_id: str) -> CandidateShare:
    for s in shares:
        if s.candidate_id == candidate_id:
            return s
    period_id = shares[0].period_id if shares else None
    raise CandidateNotFoundError(candidate_id, period_id)


class PricingEngine:
    def price(
        self,
        shares: list[CandidateShare],
        candidate_id: str,
        trade_value_delta: float,
        is_buy: bool,
    ) -> float:
        """Price per share after simulating a trade of `trade_value_delta` PILLS.

        A zero delta reads the current price. Sells pass a negative delta; only
        buys are added to the total used as the denominator, so a sell lowers
        the candidate's share without shrinking the pool.
        """
        target = find_share(shares, candidate_id)
        total = total_invested(shares)

        signed_delta = trade_value_delta if is_buy else -abs(trade_value_delta)
        new_candidate_invested = max(0.0, target.total_invested + signed_delta)
        new_total_invested = total + (trade_value_delta if is_buy else 0.0)

        if new_total_invested <= 0:
            return BASE_PRICE

        market_share = new_candidate_invested / max(new_total_invested, 1.0)
        curve = (market_share * 2) ** CURVE_EXPONENT
        return round_half_up(clamp(BASE_PRICE + curve, MIN_PRICE, MAX_PRICE))

    def probabilities(self, shares: list[CandidateShare]) -> dict[str, float]:
        if not shares:
            return {}
        total = total_invested(shares)
        if total == 0:
            uniform = 1 / len(shares)
            return {s.candidate_id: uniform for s in shares}

        weights = {
            s.candidate_id: math.exp(SOFTMAX_SCALE * (s.total_invested / total))
            for s in shares
        }
        denominator = sum(weights.values())
        # Rounded independently; the sum may drift from 1.0 by rounding.
        return {cid: round_half_up(w / denominator) for cid, w in weights.items()}

    def with_probabilities(self, shares: list[CandidateShare]) -> list[CandidateShare]:
        """Copies of `shares` with probability recomputed across the whole period."""
        probs = self.probabilities(shares)
        return [replace(s, probability=probs[s.candidate_id]) for s in shares]
