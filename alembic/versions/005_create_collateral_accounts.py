"""005: create collateral_accounts and collateral_allowances tables

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE collateral_accounts (
            asset           VARCHAR(128)    NOT NULL,
            holder          VARCHAR(128)    NOT NULL,
            balance         NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            PRIMARY KEY (asset, holder),
            CONSTRAINT ck_collateral_balance_gte_0 CHECK (balance >= 0)
        );
    """)
    op.execute("""
        CREATE TABLE collateral_allowances (
            asset           VARCHAR(128)    NOT NULL,
            owner           VARCHAR(128)    NOT NULL,
            spender         VARCHAR(128)    NOT NULL,
            amount          NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            PRIMARY KEY (asset, owner, spender),
            CONSTRAINT ck_collateral_allowance_gte_0 CHECK (amount >= 0)
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS collateral_allowances CASCADE;")
    op.execute("DROP TABLE IF EXISTS collateral_accounts CASCADE;")
