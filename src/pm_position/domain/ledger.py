"""Position ledger — per-user holdings updated after every filled order.

Cost accounting on a partial sell subtracts the sale proceeds from the cost
basis (remaining invested = invested - order value) instead of removing a
proportional slice of cost. realized_pnl is tracked separately at the
position's average price.
"""

from dataclasses import replace

from src.pm_common.errors import PositionNotFoundError
from src.pm_order.domain.models import TradeOrder
from src.pm_position.domain.models import UserPortfolio, UserPosition


def apply_fill_to_position(
    existing: UserPosition | None, order: TradeOrder, user_id: str
) -> UserPosition:
    if existing is None:
        if not order.is_buy:
            raise PositionNotFoundError(user_id, order.candidate_id)
        return UserPosition(
            user_id=user_id,
            period_id=order.period_id,
            candidate_id=order.candidate_id,
            shares_owned=order.quantity,
            average_price=order.price_per_share,
            total_invested=order.total_value,
            current_value=order.total_value,
            unrealized_pnl=0.0,
            last_trade_at=order.filled_at or order.created_at,
        )

    traded_at = order.filled_at or order.created_at

    if order.is_buy:
        new_shares = existing.shares_owned + order.quantity
        new_invested = existing.total_invested + order.total_value
        current_value = new_shares * order.price_per_share
        return replace(
            existing,
            shares_owned=new_shares,
            average_price=new_invested / new_shares,
            total_invested=new_invested,
            current_value=current_value,
            unrealized_pnl=current_value - new_invested,
            last_trade_at=traded_at,
        )

    realized = existing.realized_pnl + (
        (order.price_per_share - existing.average_price) * order.quantity
    )
    new_shares = existing.shares_owned - order.quantity
    if new_shares <= 0:
        # Closed: invested and average price kept for history.
        return replace(
            existing,
            shares_owned=0.0,
            current_value=0.0,
            unrealized_pnl=0.0,
            realized_pnl=realized,
            last_trade_at=traded_at,
        )

    remaining_invested = existing.total_invested - order.total_value
    current_value = new_shares * order.price_per_share
    return replace(
        existing,
        shares_owned=new_shares,
        total_invested=remaining_invested,
        current_value=current_value,
        unrealized_pnl=current_value - remaining_invested,
        realized_pnl=realized,
        last_trade_at=traded_at,
    )


def mark_to_market(position: UserPosition, price: float) -> UserPosition:
    """Revalue an open position at the candidate's current share price."""
    if position.is_closed:
        return replace(position, current_value=0.0, unrealized_pnl=0.0)
    current_value = position.shares_owned * price
    return replace(
        position,
        current_value=current_value,
        unrealized_pnl=current_value - position.total_invested,
    )


def build_portfolio(
    user_id: str,
    balance: float,
    positions: list[UserPosition],
    prices: dict[tuple[str, str], float],
) -> UserPortfolio:
    """Portfolio across positions; `prices` maps (period_id, candidate_id) to price."""
    valued = [
        mark_to_market(p, prices[(p.period_id, p.candidate_id)])
        if (p.period_id, p.candidate_id) in prices
        else p
        for p in positions
    ]
    open_value = sum(p.current_value for p in valued)
    return UserPortfolio(
        user_id=user_id,
        pills_balance=balance,
        positions=valued,
        total_value=balance + open_value,
        total_unrealized_pnl=sum(p.unrealized_pnl for p in valued),
        total_realized_pnl=sum(p.realized_pnl for p in valued),
    )
