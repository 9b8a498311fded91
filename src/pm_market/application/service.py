"""MarketApplicationService — orchestrates trading and resolution per period.

One asyncio.Lock per period serializes read-modify-write of the AMM state, so
two fills on the same period never price off the same snapshot. Funds are
moved inside the same DB transaction as the share, position and order rows;
the service commits.
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable, Sequence
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_account.domain.repository import FundsServiceProtocol
from src.pm_account.infrastructure.persistence import AccountFundsService
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import LedgerEntryType, OrderSide
from src.pm_common.errors import (
    AlreadyResolvedError,
    AppError,
    MarketClosedError,
    MarketNotEndedError,
    OrderNotFoundError,
    ResolutionNotFoundError,
)
from src.pm_market.application.schemas import QuoteResponse
from src.pm_market.domain.models import CandidateShare, MarketSummary
from src.pm_market.domain.pricing import PricingEngine, find_share
from src.pm_market.domain.repository import CandidateShareRepositoryProtocol
from src.pm_market.domain.summary import summarize_market
from src.pm_market.infrastructure.persistence import CandidateShareRepository
from src.pm_order.domain.engine import (
    BuyResult,
    OrderEngine,
    SellResult,
    apply_fill_to_candidate_share,
)
from src.pm_order.domain.models import TradeOrder
from src.pm_order.domain.repository import OrderRepositoryProtocol
from src.pm_order.infrastructure.persistence import OrderRepository
from src.pm_period.domain.clock import current_period, period_from_id
from src.pm_period.domain.models import MarketPeriod
from src.pm_position.domain.ledger import apply_fill_to_position, build_portfolio
from src.pm_position.domain.models import UserPortfolio, UserPosition
from src.pm_position.domain.repository import PositionRepositoryProtocol
from src.pm_position.infrastructure.persistence import PositionRepository
from src.pm_resolution.domain.engine import ResolutionEngine, winner_from_ranking
from src.pm_resolution.domain.models import MarketResolution, Payout, RankingEntry
from src.pm_resolution.domain.repository import ResolutionRepositoryProtocol
from src.pm_resolution.infrastructure.persistence import ResolutionRepository

logger = logging.getLogger(__name__)


class MarketApplicationService:
    def __init__(
        self,
        share_repo: CandidateShareRepositoryProtocol | None = None,
        order_repo: OrderRepositoryProtocol | None = None,
        position_repo: PositionRepositoryProtocol | None = None,
        resolution_repo: ResolutionRepositoryProtocol | None = None,
        funds: FundsServiceProtocol | None = None,
        candidate_ids: Sequence[str] | None = None,
        clock: Callable[[], datetime] = utc_now,
        pricing: PricingEngine | None = None,
    ) -> None:
        self._shares = share_repo or CandidateShareRepository()
        self._orders = order_repo or OrderRepository()
        self._positions = position_repo or PositionRepository()
        self._resolutions = resolution_repo or ResolutionRepository()
        self._funds = funds or AccountFundsService()
        self._candidate_ids = list(
            settings.TRACKED_CANDIDATES if candidate_ids is None else candidate_ids
        )
        self._clock = clock
        self._pricing = pricing or PricingEngine()
        self._order_engine = OrderEngine(self._pricing)
        self._resolution_engine = ResolutionEngine()
        self._period_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _load_shares(self, period_id: str, db: AsyncSession) -> list[CandidateShare]:
        """Stored shares plus tracked candidates that have not traded yet."""
        stored = await self._shares.list_by_period(period_id, db)
        known = {s.candidate_id for s in stored}
        fresh = [
            CandidateShare(period_id=period_id, candidate_id=cid)
            for cid in self._candidate_ids
            if cid not in known
        ]
        return self._pricing.with_probabilities(stored + fresh)

    def _lock_for(self, period_id: str, now: datetime) -> asyncio.Lock:
        """Return the lock for period_id.

        Idle locks of any period other than period_id and the current one are
        dropped first, so resolved and abandoned periods do not pile up.
        """
        live = {period_id, current_period(now).id}
        idle = [
            pid for pid, lock in self._period_locks.items()
            if pid not in live and not lock.locked()
        ]
        for pid in idle:
            del self._period_locks[pid]
        return self._period_locks[period_id]

    def _trading_period(self, period_id: str | None, now: datetime) -> MarketPeriod:
        period = current_period(now)
        if period_id is not None and period_id != period.id:
            raise MarketClosedError(period_id)
        return period

    async def _record_failure(
        self, order: TradeOrder, exc: AppError, db: AsyncSession
    ) -> None:
        order.mark_failed(exc.message)
        await self._orders.save(order, db)
        await db.commit()
        logger.warning(
            "Order %s failed for user %s: %s", order.id, order.user_id, exc.message
        )

    async def _apply_fill(
        self,
        order: TradeOrder,
        new_price: float,
        shares: list[CandidateShare],
        position: UserPosition | None,
        db: AsyncSession,
    ) -> tuple[list[CandidateShare], UserPosition]:
        updated = [
            apply_fill_to_candidate_share(s, order, new_price)
            if s.candidate_id == order.candidate_id
            else s
            for s in shares
        ]
        updated = self._pricing.with_probabilities(updated)
        await self._shares.upsert_many(updated, db)

        new_position = apply_fill_to_position(position, order, order.user_id)
        await self._positions.upsert(new_position, db)
        await self._orders.save(order, db)
        return updated, new_position

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_summary(self, db: AsyncSession) -> MarketSummary:
        period = current_period(self._clock())
        shares = await self._load_shares(period.id, db)
        traders = await self._positions.count_traders(period.id, db)
        return summarize_market(period, shares, traders, self._pricing)

    async def quote(
        self, db: AsyncSession, candidate_id: str, amount: float, side: str
    ) -> QuoteResponse:
        """Preview a trade on the current period without changing state."""
        period = current_period(self._clock())
        shares = await self._load_shares(period.id, db)
        is_buy = side == OrderSide.BUY.value
        current = self._pricing.price(shares, candidate_id, 0, is_buy)
        if is_buy:
            traded_shares, value = amount / current, amount
            new_price = self._pricing.price(shares, candidate_id, amount, True)
        else:
            traded_shares, value = amount, amount * current
            new_price = self._pricing.price(shares, candidate_id, -value, False)
        return QuoteResponse(
            period_id=period.id,
            candidate_id=candidate_id,
            side=side,
            amount=amount,
            current_price=current,
            new_price=new_price,
            shares=traded_shares,
            value=value,
        )

    async def get_order(self, db: AsyncSession, order_id: str) -> TradeOrder:
        order = await self._orders.get_by_id(order_id, db)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def list_orders(
        self, db: AsyncSession, user_id: str, period_id: str | None, limit: int
    ) -> list[TradeOrder]:
        return await self._orders.list_by_user(user_id, period_id, limit, db)

    async def get_portfolio(
        self, db: AsyncSession, user_id: str, period_id: str | None = None
    ) -> UserPortfolio:
        positions = await self._positions.list_by_user(user_id, period_id, db)
        prices: dict[tuple[str, str], float] = {}
        for pid in sorted({p.period_id for p in positions}):
            for s in await self._shares.list_by_period(pid, db):
                prices[(s.period_id, s.candidate_id)] = s.price_per_share
        balance = await self._funds.get_balance(user_id, db)
        return build_portfolio(user_id, balance, positions, prices)

    async def get_resolution(self, db: AsyncSession, period_id: str) -> MarketResolution:
        resolution = await self._resolutions.get(period_id, db)
        if resolution is None:
            raise ResolutionNotFoundError(period_id)
        return resolution

    # ------------------------------------------------------------------
    # Trading
    # ------------------------------------------------------------------

    async def buy(
        self,
        db: AsyncSession,
        user_id: str,
        candidate_id: str,
        pills_amount: float,
        period_id: str | None = None,
    ) -> tuple[BuyResult, CandidateShare, UserPosition]:
        now = self._clock()
        period = self._trading_period(period_id, now)

        async with self._lock_for(period.id, now):
            shares = await self._load_shares(period.id, db)
            result = self._order_engine.buy(
                user_id, period.id, candidate_id, pills_amount, shares, now
            )
            order = result.order
            try:
                await self._funds.debit(
                    user_id, pills_amount, LedgerEntryType.BET_DEBIT.value, order.id, db
                )
            except AppError as exc:
                await self._record_failure(order, exc, db)
                raise

            order.mark_filled(now)
            position = await self._positions.get(user_id, period.id, candidate_id, db)
            updated, new_position = await self._apply_fill(
                order, result.new_price, shares, position, db
            )
            await db.commit()

        logger.info(
            "BUY %s: user=%s candidate=%s pills=%.4f shares=%.4f price %.4f -> %.4f",
            order.id, user_id, candidate_id, pills_amount,
            result.shares_received, order.price_per_share, result.new_price,
        )
        return result, find_share(updated, candidate_id), new_position

    async def sell(
        self,
        db: AsyncSession,
        user_id: str,
        candidate_id: str,
        shares_amount: float,
        period_id: str | None = None,
    ) -> tuple[SellResult, CandidateShare, UserPosition]:
        now = self._clock()
        period = self._trading_period(period_id, now)

        async with self._lock_for(period.id, now):
            shares = await self._load_shares(period.id, db)
            position = await self._positions.get(user_id, period.id, candidate_id, db)
            result = self._order_engine.sell(
                user_id, period.id, candidate_id, shares_amount, shares, position, now
            )
            order = result.order
            try:
                await self._funds.credit(
                    user_id,
                    result.value_received,
                    LedgerEntryType.SELL_CREDIT.value,
                    order.id,
                    db,
                )
            except AppError as exc:
                await self._record_failure(order, exc, db)
                raise

            order.mark_filled(now)
            updated, new_position = await self._apply_fill(
                order, result.new_price, shares, position, db
            )
            await db.commit()

        logger.info(
            "SELL %s: user=%s candidate=%s shares=%.4f pills=%.4f price %.4f -> %.4f",
            order.id, user_id, candidate_id, shares_amount,
            result.value_received, order.price_per_share, result.new_price,
        )
        return result, find_share(updated, candidate_id), new_position

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def resolve(
        self,
        db: AsyncSession,
        period_id: str,
        final_ranking: Sequence[RankingEntry],
    ) -> tuple[MarketResolution, list[Payout]]:
        now = self._clock()
        period = period_from_id(period_id, now)
        if not period.is_resolved:
            raise MarketNotEndedError(period_id)
        winner = winner_from_ranking(final_ranking)

        async with self._lock_for(period.id, now):
            if await self._resolutions.get(period.id, db) is not None:
                raise AlreadyResolvedError(period.id)

            shares = await self._load_shares(period.id, db)
            resolution = self._resolution_engine.resolve(
                period.id, winner, shares, final_ranking, now
            )
            holders = await self._positions.list_by_candidate(period.id, winner, db)
            payouts = self._resolution_engine.compute_payouts(resolution, holders)
            for payout in payouts:
                await self._funds.credit(
                    payout.user_id,
                    payout.amount,
                    LedgerEntryType.PAYOUT_CREDIT.value,
                    period.id,
                    db,
                )
            await self._resolutions.save(resolution, db)
            await db.commit()

        logger.info(
            "Resolved %s: winner=%s pool=%.4f per_share=%.6f payouts=%d",
            period.id, winner, resolution.total_prize_pool,
            resolution.payout_per_share, len(payouts),
        )
        return resolution, payouts


# ---------------------------------------------------------------------------
# Singleton accessor
# ---------------------------------------------------------------------------

_service: MarketApplicationService | None = None


def get_market_service() -> MarketApplicationService:
    global _service  # noqa: PLW0603
    if _service is None:
        _service = MarketApplicationService()
    return _service
