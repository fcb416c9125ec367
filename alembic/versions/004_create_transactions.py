"""004: create transactions table (append-only trade log)

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE transactions (
            id                  BIGSERIAL       PRIMARY KEY,
            user_id             VARCHAR(64)     NOT NULL REFERENCES users (id),
            market_id           VARCHAR(96)     NOT NULL,
            market_name         VARCHAR(255)    NOT NULL,
            action_type         VARCHAR(4)      NOT NULL,
            shares              NUMERIC         NOT NULL,
            price_per_share     NUMERIC         NOT NULL,
            total_amount        NUMERIC(14, 2)  NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_transactions_action       CHECK (action_type IN ('BUY', 'SELL')),
            CONSTRAINT ck_transactions_shares_gt_0  CHECK (shares > 0)
        );
    """)
    op.execute("CREATE INDEX idx_transactions_user_created ON transactions (user_id, created_at DESC);")
    op.execute("COMMENT ON TABLE transactions IS 'Append-only: no UPDATE or DELETE, no updated_at';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS transactions CASCADE;")
