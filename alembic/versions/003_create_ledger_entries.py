"""003: create ledger_entries table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE ledger_entries (
            id              BIGSERIAL       PRIMARY KEY,
            market_id       VARCHAR(64)     NOT NULL,
            entry_type      VARCHAR(30)     NOT NULL,
            from_address    VARCHAR(128)    NOT NULL,
            to_address      VARCHAR(128)    NOT NULL,
            amount          NUMERIC(78, 0)  NOT NULL,
            asset           VARCHAR(128)    NOT NULL,
            reference       VARCHAR(64),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ledger_entry_type CHECK (
                entry_type IN (
                    'BET_STAKE', 'BET_FEE',
                    'PROPOSER_REWARD_IN', 'ORACLE_REWARD_OUT',
                    'SETTLEMENT_PAYOUT', 'TREASURY_SWEEP',
                    'TOKEN_RESCUE'
                )
            ),
            CONSTRAINT ck_ledger_amount_gt_0 CHECK (amount > 0)
        );
    """)
    op.execute("CREATE INDEX idx_ledger_market_time ON ledger_entries (market_id, created_at);")
    op.execute("COMMENT ON TABLE ledger_entries IS 'Collateral movements — append-only';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ledger_entries CASCADE;")
