"""Funds service Protocol — PILLS balance movements for order fills and payouts."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession


class FundsServiceProtocol(Protocol):
    async def get_balance(self, user_id: str, db: AsyncSession) -> float: ...

    async def debit(
        self,
        user_id: str,
        amount: float,
        entry_type: str,
        reference_id: str,
        db: AsyncSession,
    ) -> float:
        """Atomically debit; raises InsufficientBalanceError. Returns new balance."""
        ...

    async def credit(
        self,
        user_id: str,
        amount: float,
        entry_type: str,
        reference_id: str,
        db: AsyncSession,
    ) -> float: ...
