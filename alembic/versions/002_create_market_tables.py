"""002: create candidate_shares, user_positions, trade_orders, market_resolutions

Revision ID: 002
Revises: 001
Create Date: 2026-09-28
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE candidate_shares (
            period_id           VARCHAR(64)     NOT NULL,
            candidate_id        VARCHAR(64)     NOT NULL,
            price_per_share     NUMERIC(10, 4)  NOT NULL DEFAULT 0.5,
            total_shares        NUMERIC(30, 9)  NOT NULL DEFAULT 0,
            total_invested      NUMERIC(30, 9)  NOT NULL DEFAULT 0,
            probability         NUMERIC(10, 6)  NOT NULL DEFAULT 0,
            last_updated        TIMESTAMPTZ,
            PRIMARY KEY (period_id, candidate_id),
            CONSTRAINT ck_shares_price_range    CHECK (price_per_share BETWEEN 0.05 AND 0.95),
            CONSTRAINT ck_shares_total_gte_0    CHECK (total_shares >= 0),
            CONSTRAINT ck_shares_invested_gte_0 CHECK (total_invested >= 0)
        );
    """)

    op.execute("""
        CREATE TABLE user_positions (
            user_id             VARCHAR(64)     NOT NULL,
            period_id           VARCHAR(64)     NOT NULL,
            candidate_id        VARCHAR(64)     NOT NULL,
            shares_owned        NUMERIC(30, 9)  NOT NULL DEFAULT 0,
            average_price       NUMERIC(20, 9)  NOT NULL DEFAULT 0,
            total_invested      NUMERIC(30, 9)  NOT NULL DEFAULT 0,
            current_value       NUMERIC(30, 9)  NOT NULL DEFAULT 0,
            unrealized_pnl      NUMERIC(30, 9)  NOT NULL DEFAULT 0,
            realized_pnl        NUMERIC(30, 9)  NOT NULL DEFAULT 0,
            last_trade_at       TIMESTAMPTZ,
            PRIMARY KEY (user_id, period_id, candidate_id),
            CONSTRAINT ck_positions_shares_gte_0 CHECK (shares_owned >= 0)
        );
    """)
    op.execute("""
        CREATE INDEX idx_positions_period_candidate
        ON user_positions (period_id, candidate_id)
        WHERE shares_owned > 0;
    """)

    op.execute("""
        CREATE TABLE trade_orders (
            id                  VARCHAR(64)     PRIMARY KEY,
            user_id             VARCHAR(64)     NOT NULL,
            period_id           VARCHAR(64)     NOT NULL,
            candidate_id        VARCHAR(64)     NOT NULL,
            side                VARCHAR(4)      NOT NULL,
            quantity            NUMERIC(30, 9)  NOT NULL,
            price_per_share     NUMERIC(10, 4)  NOT NULL,
            total_value         NUMERIC(30, 9)  NOT NULL,
            status              VARCHAR(10)     NOT NULL DEFAULT 'pending',
            failure_reason      VARCHAR(500),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            filled_at           TIMESTAMPTZ,
            CONSTRAINT ck_orders_side   CHECK (side IN ('buy', 'sell')),
            CONSTRAINT ck_orders_status CHECK (
                status IN ('pending', 'filled', 'cancelled', 'failed')
            )
        );
    """)
    op.execute("CREATE INDEX idx_orders_user_time ON trade_orders (user_id, created_at DESC);")
    op.execute("CREATE INDEX idx_orders_period ON trade_orders (period_id);")

    op.execute("""
        CREATE TABLE market_resolutions (
            period_id               VARCHAR(64)     PRIMARY KEY,
            winner                  VARCHAR(64)     NOT NULL,
            final_ranking           JSONB           NOT NULL,
            payout_per_share        NUMERIC(30, 9)  NOT NULL,
            total_winning_shares    NUMERIC(30, 9)  NOT NULL,
            total_prize_pool        NUMERIC(30, 9)  NOT NULL,
            house_fee               NUMERIC(30, 9)  NOT NULL DEFAULT 0,
            resolved_at             TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("COMMENT ON TABLE market_resolutions IS 'One immutable row per resolved period';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS market_resolutions CASCADE;")
    op.execute("DROP TABLE IF EXISTS trade_orders CASCADE;")
    op.execute("DROP TABLE IF EXISTS user_positions CASCADE;")
    op.execute("DROP TABLE IF EXISTS candidate_shares CASCADE;")
