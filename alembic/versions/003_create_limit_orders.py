"""003: create limit_orders table

Revision ID: 003
Revises: 002
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE limit_orders (
            id                  VARCHAR(26)     PRIMARY KEY,
            user_id             VARCHAR(64)     NOT NULL REFERENCES users (id),
            market_id           VARCHAR(96)     NOT NULL,
            market_name         VARCHAR(255)    NOT NULL,
            order_type          VARCHAR(4)      NOT NULL,
            shares              NUMERIC         NOT NULL,
            limit_price         NUMERIC         NOT NULL,
            escrowed_amount     NUMERIC(14, 2)  NOT NULL DEFAULT 0,
            status              VARCHAR(10)     NOT NULL DEFAULT 'PENDING',
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            filled_at           TIMESTAMPTZ,
            CONSTRAINT ck_limit_orders_type         CHECK (order_type IN ('BUY', 'SELL')),
            CONSTRAINT ck_limit_orders_status       CHECK (status IN ('PENDING', 'FILLED', 'CANCELLED')),
            CONSTRAINT ck_limit_orders_shares_gt_0  CHECK (shares > 0),
            CONSTRAINT ck_limit_orders_price_range  CHECK (limit_price > 0 AND limit_price < 1),
            CONSTRAINT ck_limit_orders_escrow_gte_0 CHECK (escrowed_amount >= 0),
            CONSTRAINT ck_limit_orders_filled_at    CHECK ((status = 'FILLED') = (filled_at IS NOT NULL))
        );
    """)
    op.execute("CREATE INDEX idx_limit_orders_user_status ON limit_orders (user_id, status);")
    # fill sweep scans PENDING orders of every user
    op.execute("""
        CREATE INDEX idx_limit_orders_pending ON limit_orders (market_id)
            WHERE status = 'PENDING';
    """)
    op.execute("COMMENT ON TABLE limit_orders IS 'Resting limit orders; status only moves PENDING -> FILLED | CANCELLED';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS limit_orders CASCADE;")
