"""001: create markets table

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE markets (
            id                          VARCHAR(64)     PRIMARY KEY,
            pair_name                   VARCHAR(200)    NOT NULL,
            owner_address               VARCHAR(128)    NOT NULL,
            treasury                    VARCHAR(128)    NOT NULL,
            fee_bps                     SMALLINT        NOT NULL DEFAULT 0,
            collateral                  VARCHAR(128)    NOT NULL,
            custody                     VARCHAR(128)    NOT NULL,
            oracle                      VARCHAR(128)    NOT NULL,
            price_identifier            BYTEA           NOT NULL,
            custom_ancillary_data       BYTEA           NOT NULL,
            proposer_reward             NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            liveness                    BIGINT          NOT NULL DEFAULT 7200,
            proposer_bond               NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            betting_window_end          BIGINT          NOT NULL DEFAULT 0,
            market_initialized          BOOLEAN         NOT NULL DEFAULT FALSE,
            request_timestamp           BIGINT          NOT NULL DEFAULT 0,
            price_requested             BOOLEAN         NOT NULL DEFAULT FALSE,
            received_settlement_price   BOOLEAN         NOT NULL DEFAULT FALSE,
            settlement_price            NUMERIC(78, 0),
            total_yes                   NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            total_no                    NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            paused                      BOOLEAN         NOT NULL DEFAULT FALSE,
            dispute_count               INT             NOT NULL DEFAULT 0,
            created_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_markets_fee CHECK (fee_bps >= 0 AND fee_bps <= 1000),
            CONSTRAINT ck_markets_treasury CHECK (treasury <> ''),
            CONSTRAINT ck_markets_pools_gte_0 CHECK (total_yes >= 0 AND total_no >= 0),
            CONSTRAINT ck_markets_settlement_price CHECK (
                settlement_price IS NULL
                OR settlement_price IN (0, 500000000000000000, 1000000000000000000)
            )
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_markets_updated_at
            BEFORE UPDATE ON markets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE markets IS 'Escrow binary markets: pools, oracle round, settlement';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS markets CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
