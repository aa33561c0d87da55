"""002: create positions table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
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
            market_id       VARCHAR(64)     NOT NULL REFERENCES markets (id),
            address         VARCHAR(128)    NOT NULL,
            bets_yes        NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            bets_no         NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            claimed         BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            PRIMARY KEY (market_id, address),
            CONSTRAINT ck_positions_bets_gte_0 CHECK (bets_yes >= 0 AND bets_no >= 0),
            CONSTRAINT ck_positions_claimed_zeroed CHECK (
                NOT claimed OR (bets_yes = 0 AND bets_no = 0)
            )
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_positions_updated_at
            BEFORE UPDATE ON positions
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS positions CASCADE;")
