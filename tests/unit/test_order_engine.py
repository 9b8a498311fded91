# tests/unit/test_order_engine.py
"""Unit tests for OrderEngine buy/sell pricing and validation."""
import math
from datetime import UTC, datetime

import pytest

from src.pm_common.errors import (
    CandidateNotFoundError,
    InsufficientSharesError,
    InvalidAmountError,
    PositionNotFoundError,
)
from src.pm_market.domain.models import CandidateShare
from src.pm_order.domain.engine import OrderEngine, apply_fill_to_candidate_share
from src.pm_position.domain.models import UserPosition

P = "period_1792368000000"
NOW = datetime(2026, 10, 19, 12, tzinfo=UTC)


def _share(cid: str, invested: float = 0.0, shares: float = 0.0) -> CandidateShare:
    return CandidateShare(
        period_id=P, candidate_id=cid, total_invested=invested, total_shares=shares
    )


def _position(shares: float, avg: float = 0.5) -> UserPosition:
    return UserPosition(
        user_id="u1", period_id=P, candidate_id="A",
        shares_owned=shares, average_price=avg, total_invested=shares * avg,
    )


@pytest.fixture
def engine() -> OrderEngine:
    return OrderEngine(min_bet=1.0)


class TestBuy:
    def test_first_buy_on_empty_market(self, engine: OrderEngine) -> None:
        result = engine.buy("u1", P, "A", 100, [_share("A"), _share("B")], NOW)

        assert result.shares_received == 200
        assert result.new_price == 0.95
        order = result.order
        assert order.id.startswith("order_")
        assert order.side == "buy"
        assert order.status == "pending"
        assert order.quantity == 200
        assert order.price_per_share == 0.5
        assert order.total_value == 100
        assert order.created_at == NOW
        assert order.filled_at is None

    def test_buy_does_not_mutate_shares(self, engine: OrderEngine) -> None:
        shares = [_share("A"), _share("B")]
        engine.buy("u1", P, "A", 100, shares, NOW)
        assert shares[0].total_invested == 0.0

    def test_order_ids_are_unique(self, engine: OrderEngine) -> None:
        shares = [_share("A"), _share("B")]
        ids = {engine.buy("u1", P, "A", 10, shares, NOW).order.id for _ in range(5)}
        assert len(ids) == 5

    @pytest.mark.parametrize("amount", [0, -5, 0.5])
    def test_below_min_bet(self, engine: OrderEngine, amount: float) -> None:
        with pytest.raises(InvalidAmountError):
            engine.buy("u1", P, "A", amount, [_share("A")], NOW)

    @pytest.mark.parametrize("amount", [math.nan, math.inf, -math.inf])
    def test_non_finite_bet(self, engine: OrderEngine, amount: float) -> None:
        with pytest.raises(InvalidAmountError):
            engine.buy("u1", P, "A", amount, [_share("A"), _share("B")], NOW)

    def test_min_bet_itself_is_accepted(self, engine: OrderEngine) -> None:
        result = engine.buy("u1", P, "A", 1.0, [_share("A"), _share("B")], NOW)
        assert result.order.total_value == 1.0

    def test_unknown_candidate(self, engine: OrderEngine) -> None:
        with pytest.raises(CandidateNotFoundError):
            engine.buy("u1", P, "Z", 10, [_share("A")], NOW)


class TestSell:
    def test_sell_at_current_price(self, engine: OrderEngine) -> None:
        shares = [_share("A", 100, 200), _share("B", 100, 200)]
        result = engine.sell("u1", P, "A", 100, shares, _position(200), NOW)

        # current price 0.95 (A holds half the pool); proceeds 95
        assert result.order.price_per_share == 0.95
        assert result.value_received == pytest.approx(95.0)
        assert result.order.side == "sell"
        assert result.order.quantity == 100
        # A left with 5 of 200 invested -> 0.5 + 0.05 ** 1.5
        assert result.new_price == 0.5112

    @pytest.mark.parametrize("qty", [0, -1])
    def test_non_positive_quantity(self, engine: OrderEngine, qty: float) -> None:
        with pytest.raises(InvalidAmountError):
            engine.sell("u1", P, "A", qty, [_share("A", 10)], _position(20), NOW)

    @pytest.mark.parametrize("qty", [math.nan, math.inf, -math.inf])
    def test_non_finite_quantity(self, engine: OrderEngine, qty: float) -> None:
        with pytest.raises(InvalidAmountError):
            engine.sell("u1", P, "A", qty, [_share("A", 100, 200)], _position(200), NOW)

    def test_without_position(self, engine: OrderEngine) -> None:
        with pytest.raises(PositionNotFoundError):
            engine.sell("u1", P, "A", 10, [_share("A", 10)], None, NOW)

    def test_more_than_owned(self, engine: OrderEngine) -> None:
        with pytest.raises(InsufficientSharesError):
            engine.sell("u1", P, "A", 20.5, [_share("A", 10)], _position(20), NOW)

    def test_selling_everything_is_allowed(self, engine: OrderEngine) -> None:
        shares = [_share("A", 10, 20), _share("B", 10, 20)]
        result = engine.sell("u1", P, "A", 20, shares, _position(20), NOW)
        assert result.order.quantity == 20


class TestApplyFillToCandidateShare:
    def test_buy_adds_shares_and_investment(self, engine: OrderEngine) -> None:
        shares = [_share("A"), _share("B")]
        result = engine.buy("u1", P, "A", 100, shares, NOW)
        result.order.mark_filled(NOW)

        updated = apply_fill_to_candidate_share(shares[0], result.order, result.new_price)

        assert updated.total_shares == 200
        assert updated.total_invested == 100
        assert updated.price_per_share == 0.95
        assert updated.last_updated == NOW
        assert shares[0].total_shares == 0.0

    def test_sell_floors_at_zero(self, engine: OrderEngine) -> None:
        shares = [_share("A", 10, 20), _share("B", 10, 20)]
        result = engine.sell("u1", P, "A", 20, shares, _position(20), NOW)
        result.order.mark_filled(NOW)
        # market state smaller than the position (e.g. rounding drift)
        thin = _share("A", 1, 5)

        updated = apply_fill_to_candidate_share(thin, result.order, result.new_price)

        assert updated.total_shares == 0.0
        assert updated.total_invested == 0.0

    def test_probability_untouched(self, engine: OrderEngine) -> None:
        share = CandidateShare(period_id=P, candidate_id="A", probability=0.42)
        result = engine.buy("u1", P, "A", 10, [share, _share("B")], NOW)
        result.order.mark_filled(NOW)
        assert apply_fill_to_candidate_share(share, result.order, 0.9).probability == 0.42
