"""006: add markets.posted_reward

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        ALTER TABLE markets
            ADD COLUMN posted_reward NUMERIC(78, 0) NOT NULL DEFAULT 0,
            ADD CONSTRAINT ck_markets_posted_reward_gte_0 CHECK (posted_reward >= 0);
    """)
    # Rounds opened before this column existed were funded with the current reward.
    op.execute("UPDATE markets SET posted_reward = proposer_reward WHERE price_requested;")
    op.execute(
        "COMMENT ON COLUMN markets.posted_reward IS "
        "'Proposer reward funded for the open oracle round; dispute refunds must match it';"
    )


def downgrade() -> None:
    op.execute("ALTER TABLE markets DROP COLUMN IF EXISTS posted_reward;")
