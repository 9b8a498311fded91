"""TradeOrder domain model — pure dataclass, no SQLAlchemy dependency."""
import uuid
from dataclasses import dataclass
from datetime import datetime

from src.pm_common.enums import OrderSide, OrderStatus
from src.pm_common.errors import OrderStateError


def new_order_id() -> str:
    return f"order_{uuid.uuid4().hex}"


@dataclass
class TradeOrder:
    id: str
    user_id: str
    period_id: str
    candidate_id: str
    side: str  # buy / sell
    quantity: float  # shares
    price_per_share: float  # price at fill (PILLS)
    total_value: float  # PILLS, fixed at creation
    status: str = OrderStatus.PENDING.value
    failure_reason: str | None = None
    created_at: datetime | None = None
    filled_at: datetime | None = None

    @property
    def is_buy(self) -> bool:
        return self.side == OrderSide.BUY.value

    @property
    def is_pending(self) -> bool:
        return self.status == OrderStatus.PENDING.value

    # pending is the only non-terminal status

    def _transition(self, target: OrderStatus) -> None:
        if not self.is_pending:
            raise OrderStateError(self.id, self.status, target.value)
        self.status = target.value

    def mark_filled(self, filled_at: datetime) -> None:
        self._transition(OrderStatus.FILLED)
        self.filled_at = filled_at

    def mark_failed(self, reason: str) -> None:
        self._transition(OrderStatus.FAILED)
        self.failure_reason = reason

    def mark_cancelled(self, reason: str) -> None:
        """Manual cancellation only; automatic processing never cancels."""
        self._transition(OrderStatus.CANCELLED)
        self.failure_reason = reason
