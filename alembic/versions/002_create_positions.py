"""002: create positions table

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE positions (
            user_id             VARCHAR(64)     NOT NULL REFERENCES users (id),
            market_id           VARCHAR(96)     NOT NULL,
            market_name         VARCHAR(255)    NOT NULL,
            shares              NUMERIC         NOT NULL,
            avg_entry_price     NUMERIC         NOT NULL,
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_positions                 PRIMARY KEY (user_id, market_id),
            CONSTRAINT ck_positions_shares_gt_0     CHECK (shares > 0),
            CONSTRAINT ck_positions_avg_range       CHECK (avg_entry_price >= 0 AND avg_entry_price <= 1)
        );
    """)
    op.execute("CREATE INDEX idx_positions_market ON positions (market_id);")
    op.execute("""
        CREATE TRIGGER trg_positions_updated_at
            BEFORE UPDATE ON positions
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE positions IS 'One row per (user, market target); deleted when shares reach 0';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS positions CASCADE;")
