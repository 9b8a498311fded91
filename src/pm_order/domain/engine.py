"""OrderEngine — turns buy/sell requests into pending orders and price moves.

The engine owns no state. It validates, prices and returns a pending
TradeOrder plus the post-trade price; the caller confirms the funds movement,
marks the order filled and applies it with apply_fill_to_candidate_share()
and pm_position.domain.ledger.apply_fill_to_position().
"""
import math
from dataclasses import dataclass, replace
from datetime import datetime

from config.settings import settings
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import OrderSide
from src.pm_common.errors import (
    InsufficientSharesError,
    InvalidAmountError,
    PositionNotFoundError,
)
from src.pm_market.domain.models import CandidateShare
from src.pm_market.domain.pricing import PricingEngine
from src.pm_order.domain.models import TradeOrder, new_order_id
from src.pm_position.domain.models import UserPosition


@dataclass
class BuyResult:
    order: TradeOrder
    new_price: float
    shares_received: float


@dataclass
class SellResult:
    order: TradeOrder
    new_price: float
    value_received: float


class OrderEngine:
    def __init__(
        self, pricing: PricingEngine | None = None, min_bet: float | None = None
    ) -> None:
        self._pricing = pricing or PricingEngine()
        self._min_bet = settings.MIN_BET if min_bet is None else min_bet

    def buy(
        self,
        user_id: str,
        period_id: str,
        candidate_id: str,
        pills_amount: float,
        shares: list[CandidateShare],
        now: datetime | None = None,
    ) -> BuyResult:
        if not math.isfinite(pills_amount):
            raise InvalidAmountError(f"bet must be a finite number, got {pills_amount}")
        if pills_amount < self._min_bet:
            raise InvalidAmountError(
                f"bet {pills_amount} is below the minimum of {self._min_bet} PILLS"
            )

        current_price = self._pricing.price(shares, candidate_id, 0, True)
        shares_received = pills_amount / current_price
        new_price = self._pricing.price(shares, candidate_id, pills_amount, True)

        order = TradeOrder(
            id=new_order_id(),
            user_id=user_id,
            period_id=period_id,
            candidate_id=candidate_id,
            side=OrderSide.BUY.value,
            quantity=shares_received,
            price_per_share=current_price,
            total_value=pills_amount,
            created_at=now or utc_now(),
        )
        return BuyResult(order=order, new_price=new_price, shares_received=shares_received)

    def sell(
        self,
        user_id: str,
        period_id: str,
        candidate_id: str,
        shares_amount: float,
        shares: list[CandidateShare],
        position: UserPosition | None,
        now: datetime | None = None,
    ) -> SellResult:
        if not math.isfinite(shares_amount):
            raise InvalidAmountError(f"share quantity must be finite, got {shares_amount}")
        if shares_amount <= 0:
            raise InvalidAmountError(f"share quantity must be positive, got {shares_amount}")
        if position is None:
            raise PositionNotFoundError(user_id, candidate_id)
        if shares_amount > position.shares_owned:
            raise InsufficientSharesError(shares_amount, position.shares_owned)

        current_price = self._pricing.price(shares, candidate_id, 0, False)
        value_received = shares_amount * current_price
        new_price = self._pricing.price(shares, candidate_id, -value_received, False)

        order = TradeOrder(
            id=new_order_id(),
            user_id=user_id,
            period_id=period_id,
            candidate_id=candidate_id,
            side=OrderSide.SELL.value,
            quantity=shares_amount,
            price_per_share=current_price,
            total_value=value_received,
            created_at=now or utc_now(),
        )
        return SellResult(order=order, new_price=new_price, value_received=value_received)


def apply_fill_to_candidate_share(
    share: CandidateShare, order: TradeOrder, new_price: float
) -> CandidateShare:
    """Apply a filled order to the candidate's AMM state.

    Probability is left untouched: callers recompute it for every candidate of
    the period with PricingEngine.with_probabilities().
    """
    sign = 1 if order.is_buy else -1
    return replace(
        share,
        price_per_share=new_price,
        total_shares=max(0.0, share.total_shares + sign * order.quantity),
        total_invested=max(0.0, share.total_invested + sign * order.total_value),
        last_updated=order.filled_at or utc_now(),
    )
