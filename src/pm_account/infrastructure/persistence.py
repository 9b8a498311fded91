"""AccountFundsService — concrete implementation of FundsServiceProtocol.

All balance-mutating operations use atomic PostgreSQL UPDATE ... RETURNING.
A result of 0 rows on debit means the account is missing or short of PILLS.
Every movement writes one ledger_entries row referencing the order or period.

Transaction ownership: the CALLER (application service) commits.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.errors import InsufficientBalanceError

# ---------------------------------------------------------------------------
# SQL: accounts mutations
# ---------------------------------------------------------------------------

_GET_BALANCE_SQL = text("""
    SELECT available_balance FROM accounts WHERE user_id = :user_id
""")

_DEBIT_SQL = text("""
    UPDATE accounts
    SET available_balance = available_balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND available_balance >= :amount
    RETURNING available_balance
""")

_CREDIT_SQL = text("""
    INSERT INTO accounts (user_id, available_balance)
    VALUES (:user_id, :amount)
    ON CONFLICT (user_id) DO UPDATE
        SET available_balance = accounts.available_balance + EXCLUDED.available_balance,
            version = accounts.version + 1,
            updated_at = NOW()
    RETURNING available_balance
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (user_id, entry_type, amount, balance_after, reference_id)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after, :reference_id)
""")


class AccountFundsService:
    async def get_balance(self, user_id: str, db: AsyncSession) -> float:
        row = (await db.execute(_GET_BALANCE_SQL, {"user_id": user_id})).fetchone()
        if row is None:
            return 0.0
        return float(row.available_balance)

    async def debit(
        self,
        user_id: str,
        amount: float,
        entry_type: str,
        reference_id: str,
        db: AsyncSession,
    ) -> float:
        row = (
            await db.execute(_DEBIT_SQL, {"user_id": user_id, "amount": amount})
        ).fetchone()
        if row is None:
            available = await self.get_balance(user_id, db)
            raise InsufficientBalanceError(amount, available)
        balance_after = float(row.available_balance)
        await self._write_ledger(user_id, entry_type, -amount, balance_after, reference_id, db)
        return balance_after

    async def credit(
        self,
        user_id: str,
        amount: float,
        entry_type: str,
        reference_id: str,
        db: AsyncSession,
    ) -> float:
        row = (
            await db.execute(_CREDIT_SQL, {"user_id": user_id, "amount": amount})
        ).fetchone()
        balance_after = float(row.available_balance)
        await self._write_ledger(user_id, entry_type, amount, balance_after, reference_id, db)
        return balance_after

    async def _write_ledger(
        self,
        user_id: str,
        entry_type: str,
        amount: float,
        balance_after: float,
        reference_id: str,
        db: AsyncSession,
    ) -> None:
        await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "user_id": user_id,
                "entry_type": entry_type,
                "amount": amount,
                "balance_after": balance_after,
                "reference_id": reference_id,
            },
        )
