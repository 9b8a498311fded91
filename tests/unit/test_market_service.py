# tests/unit/test_market_service.py
"""Unit tests for MarketApplicationService using mock repositories."""
import asyncio
import math
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.pm_common.errors import (
    AlreadyResolvedError,
    CandidateNotFoundError,
    InsufficientBalanceError,
    InsufficientSharesError,
    InvalidAmountError,
    MarketClosedError,
    MarketNotEndedError,
    OrderNotFoundError,
    PositionNotFoundError,
    ResolutionNotFoundError,
)
from src.pm_market.application.service import MarketApplicationService
from src.pm_market.domain.models import CandidateShare
from src.pm_period.domain.clock import current_period
from src.pm_position.domain.models import UserPosition
from src.pm_resolution.domain.models import MarketResolution, RankingEntry

NOW = datetime(2026, 10, 19, 12, tzinfo=UTC)
PERIOD = current_period(NOW)
P = PERIOD.id


class InMemoryShareRepo:
    def __init__(self, shares: list[CandidateShare] | None = None) -> None:
        self.rows = {s.candidate_id: s for s in shares or []}

    async def list_by_period(self, period_id, db):
        await asyncio.sleep(0)
        return [replace(s) for s in self.rows.values() if s.period_id == period_id]

    async def upsert_many(self, shares, db):
        for s in shares:
            self.rows[s.candidate_id] = replace(s)


@pytest.fixture
def repos():
    share_repo = InMemoryShareRepo()
    order_repo = MagicMock()
    order_repo.save = AsyncMock()
    order_repo.get_by_id = AsyncMock(return_value=None)
    order_repo.list_by_user = AsyncMock(return_value=[])
    position_repo = MagicMock()
    position_repo.get = AsyncMock(return_value=None)
    position_repo.upsert = AsyncMock()
    position_repo.list_by_user = AsyncMock(return_value=[])
    position_repo.list_by_candidate = AsyncMock(return_value=[])
    position_repo.count_traders = AsyncMock(return_value=0)
    resolution_repo = MagicMock()
    resolution_repo.get = AsyncMock(return_value=None)
    resolution_repo.save = AsyncMock()
    funds = MagicMock()
    funds.debit = AsyncMock(return_value=900.0)
    funds.credit = AsyncMock(return_value=1000.0)
    funds.get_balance = AsyncMock(return_value=1000.0)
    return MagicMock(
        shares=share_repo, orders=order_repo, positions=position_repo,
        resolutions=resolution_repo, funds=funds,
    )


def _service(repos, now: datetime = NOW) -> MarketApplicationService:
    return MarketApplicationService(
        share_repo=repos.shares,
        order_repo=repos.orders,
        position_repo=repos.positions,
        resolution_repo=repos.resolutions,
        funds=repos.funds,
        candidate_ids=["A", "B"],
        clock=lambda: now,
    )


class TestQueries:
    @pytest.mark.asyncio
    async def test_summary_materializes_tracked_candidates(self, db, repos):
        repos.positions.count_traders.return_value = 4
        summary = await _service(repos).get_summary(db)

        assert summary.period.id == P
        assert [s.candidate_id for s in summary.shares] == ["A", "B"]
        assert all(s.price_per_share == 0.5 for s in summary.shares)
        assert summary.probabilities == {"A": 0.5, "B": 0.5}
        assert summary.active_traders == 4
        # nothing persisted by a read
        assert repos.shares.rows == {}

    @pytest.mark.asyncio
    async def test_quote_buy(self, db, repos):
        q = await _service(repos).quote(db, "A", 100, "buy")
        assert q.current_price == 0.5
        assert q.new_price == 0.95
        assert q.shares == 200
        assert q.value == 100

    @pytest.mark.asyncio
    async def test_quote_sell(self, db, repos):
        repos.shares.rows = {
            "A": CandidateShare(P, "A", total_invested=100, total_shares=200),
            "B": CandidateShare(P, "B", total_invested=100, total_shares=200),
        }
        q = await _service(repos).quote(db, "A", 100, "sell")
        assert q.current_price == 0.95
        assert q.value == pytest.approx(95)
        assert q.new_price == 0.5112

    @pytest.mark.asyncio
    async def test_get_order_missing(self, db, repos):
        with pytest.raises(OrderNotFoundError):
            await _service(repos).get_order(db, "order_x")

    @pytest.mark.asyncio
    async def test_portfolio_marks_to_stored_price(self, db, repos):
        repos.shares.rows = {"A": CandidateShare(P, "A", price_per_share=0.8)}
        repos.positions.list_by_user.return_value = [
            UserPosition("u1", P, "A", shares_owned=100, average_price=0.5, total_invested=50)
        ]
        pf = await _service(repos).get_portfolio(db, "u1")

        assert pf.pills_balance == 1000.0
        assert pf.positions[0].current_value == pytest.approx(80)
        assert pf.total_value == pytest.approx(1080)
        assert pf.total_unrealized_pnl == pytest.approx(30)


class TestBuy:
    @pytest.mark.asyncio
    async def test_fill_updates_everything_and_commits(self, db, repos):
        result, share, position = await _service(repos).buy(db, "u1", "A", 100)

        assert result.order.status == "filled"
        assert result.order.filled_at == NOW
        assert result.shares_received == 200
        assert result.new_price == 0.95
        assert share.probability == 0.9933
        assert position.shares_owned == 200

        repos.funds.debit.assert_awaited_once_with("u1", 100, "BET_DEBIT", result.order.id, db)
        assert repos.shares.rows["A"].total_invested == 100
        assert repos.shares.rows["A"].price_per_share == 0.95
        assert repos.shares.rows["B"].price_per_share == 0.5
        assert repos.shares.rows["B"].probability == 0.0067
        repos.positions.upsert.assert_awaited_once()
        repos.orders.save.assert_awaited_once_with(result.order, db)
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_explicit_current_period_is_accepted(self, db, repos):
        result, _, _ = await _service(repos).buy(db, "u1", "A", 10, period_id=P)
        assert result.order.period_id == P

    @pytest.mark.asyncio
    async def test_other_period_is_closed(self, db, repos):
        past = current_period(NOW - timedelta(days=1)).id
        with pytest.raises(MarketClosedError):
            await _service(repos).buy(db, "u1", "A", 10, period_id=past)
        repos.funds.debit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_untracked_candidate(self, db, repos):
        with pytest.raises(CandidateNotFoundError):
            await _service(repos).buy(db, "u1", "Z", 10)

    @pytest.mark.asyncio
    async def test_below_min_bet_touches_nothing(self, db, repos):
        with pytest.raises(InvalidAmountError):
            await _service(repos).buy(db, "u1", "A", 0)
        repos.orders.save.assert_not_awaited()
        db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_insufficient_balance_records_failed_order(self, db, repos):
        repos.funds.debit.side_effect = InsufficientBalanceError(100, 40)

        with pytest.raises(InsufficientBalanceError):
            await _service(repos).buy(db, "u1", "A", 100)

        saved = repos.orders.save.await_args.args[0]
        assert saved.status == "failed"
        assert "Insufficient balance" in saved.failure_reason
        db.commit.assert_awaited_once()
        repos.positions.upsert.assert_not_awaited()
        assert repos.shares.rows == {}

    @pytest.mark.asyncio
    async def test_concurrent_buys_are_serialized(self, db, repos):
        svc = _service(repos)

        async def slow_debit(*args, **kwargs):
            await asyncio.sleep(0)
            return 900.0

        repos.funds.debit.side_effect = slow_debit

        results = await asyncio.gather(
            svc.buy(db, "u1", "A", 100), svc.buy(db, "u2", "A", 100)
        )

        prices = [r[0].order.price_per_share for r in results]
        assert prices == [0.5, 0.95]
        assert repos.shares.rows["A"].total_invested == 200


class TestSell:
    @pytest.fixture
    def seeded(self, repos):
        repos.shares.rows = {
            "A": CandidateShare(P, "A", total_invested=100, total_shares=200),
            "B": CandidateShare(P, "B", total_invested=100, total_shares=200),
        }
        repos.positions.get.return_value = UserPosition(
            "u1", P, "A", shares_owned=200, average_price=0.5, total_invested=100
        )
        return repos

    @pytest.mark.asyncio
    async def test_fill_credits_proceeds(self, db, seeded):
        result, share, position = await _service(seeded).sell(db, "u1", "A", 100)

        assert result.order.status == "filled"
        assert result.value_received == pytest.approx(95)
        seeded.funds.credit.assert_awaited_once()
        args = seeded.funds.credit.await_args.args
        assert args[0] == "u1"
        assert args[2] == "SELL_CREDIT"
        assert share.price_per_share == 0.5112
        assert seeded.shares.rows["A"].total_shares == 100
        assert position.shares_owned == 100
        assert position.realized_pnl == pytest.approx(45)
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_oversell_changes_nothing(self, db, seeded):
        before = dict(seeded.shares.rows)
        with pytest.raises(InsufficientSharesError):
            await _service(seeded).sell(db, "u1", "A", 200.01)
        assert seeded.shares.rows == before
        seeded.funds.credit.assert_not_awaited()
        seeded.orders.save.assert_not_awaited()
        db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_nan_sell_leaves_candidate_state_alone(self, db, seeded):
        before = dict(seeded.shares.rows)
        with pytest.raises(InvalidAmountError):
            await _service(seeded).sell(db, "u1", "A", math.nan)
        assert seeded.shares.rows == before
        assert seeded.shares.rows["A"].total_shares == 200
        seeded.funds.credit.assert_not_awaited()
        seeded.positions.upsert.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_buy_then_sell_everything_closes_position(self, db, repos):
        svc = _service(repos)
        _, _, opened = await svc.buy(db, "u1", "A", 100)
        repos.positions.get.return_value = opened

        _, share, closed = await svc.sell(db, "u1", "A", opened.shares_owned)

        assert closed.shares_owned == 0
        assert closed.is_closed is True
        assert share.total_shares == 0

    @pytest.mark.asyncio
    async def test_without_position(self, db, seeded):
        seeded.positions.get.return_value = None
        with pytest.raises(PositionNotFoundError):
            await _service(seeded).sell(db, "u1", "A", 10)
        seeded.funds.credit.assert_not_awaited()


class TestResolve:
    def _ranking(self) -> list[RankingEntry]:
        return [RankingEntry("A", 1, 2.0), RankingEntry("B", 2, -1.0)]

    @pytest.mark.asyncio
    async def test_resolves_and_pays_winners(self, db, repos):
        repos.shares.rows = {
            "A": CandidateShare(P, "A", total_invested=100, total_shares=200),
            "B": CandidateShare(P, "B", total_invested=50, total_shares=100),
        }
        repos.positions.list_by_candidate.return_value = [
            UserPosition("u1", P, "A", shares_owned=150),
            UserPosition("u2", P, "A", shares_owned=50),
        ]
        svc = _service(repos, now=PERIOD.end_time + timedelta(minutes=5))

        resolution, payouts = await svc.resolve(db, P, self._ranking())

        assert resolution.winner == "A"
        assert resolution.payout_per_share == 0.75
        assert [p.amount for p in payouts] == [112.5, 37.5]
        credits = [c.args for c in repos.funds.credit.await_args_list]
        assert [(c[0], c[1], c[2], c[3]) for c in credits] == [
            ("u1", 112.5, "PAYOUT_CREDIT", P),
            ("u2", 37.5, "PAYOUT_CREDIT", P),
        ]
        repos.positions.list_by_candidate.assert_awaited_once_with(P, "A", db)
        repos.resolutions.save.assert_awaited_once_with(resolution, db)
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_running_period_cannot_resolve(self, db, repos):
        with pytest.raises(MarketNotEndedError):
            await _service(repos).resolve(db, P, self._ranking())

    @pytest.mark.asyncio
    async def test_second_resolution_rejected(self, db, repos):
        repos.resolutions.get.return_value = MagicMock(spec=MarketResolution)
        svc = _service(repos, now=PERIOD.end_time)
        with pytest.raises(AlreadyResolvedError):
            await svc.resolve(db, P, self._ranking())
        repos.funds.credit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_resolution_missing(self, db, repos):
        with pytest.raises(ResolutionNotFoundError):
            await _service(repos).get_resolution(db, P)


class TestPeriodLocks:
    @pytest.mark.asyncio
    async def test_idle_locks_of_past_periods_are_dropped(self, db, repos):
        later = PERIOD.end_time + timedelta(minutes=5)
        svc = _service(repos, now=later)
        ranking = [RankingEntry("A", 1, 0.0)]
        older = current_period(NOW - timedelta(days=1)).id

        await svc.resolve(db, older, ranking)
        await svc.resolve(db, P, ranking)
        assert set(svc._period_locks) == {P}

        await svc.buy(db, "u1", "A", 100)
        assert set(svc._period_locks) == {current_period(later).id}
