"""MarketRepository — concrete implementation of MarketRepositoryProtocol.

All queries use raw text() SQL (no ORM).
NUMERIC(78,0) columns come back as Decimal; every amount is coerced to int.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_market.domain.models import LedgerEntry, MarketEvent, MarketState, Position

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_MARKET_COLUMNS = """
    id, pair_name, owner_address, treasury, fee_bps, collateral, custody, oracle,
    price_identifier, custom_ancillary_data,
    proposer_reward, liveness, proposer_bond,
    betting_window_end, market_initialized, request_timestamp, posted_reward,
    price_requested, received_settlement_price, settlement_price,
    total_yes, total_no, paused, dispute_count, created_at
"""

_GET_MARKET_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM markets
    WHERE id = :market_id
""")

_GET_POSITIONS_SQL = text("""
    SELECT address, bets_yes, bets_no, claimed
    FROM positions
    WHERE market_id = :market_id
""")

_INSERT_MARKET_SQL = text("""
    INSERT INTO markets (
        id, pair_name, owner_address, treasury, fee_bps, collateral, custody, oracle,
        price_identifier, custom_ancillary_data,
        proposer_reward, liveness, proposer_bond
    ) VALUES (
        :id, :pair_name, :owner_address, :treasury, :fee_bps, :collateral, :custody, :oracle,
        :price_identifier, :custom_ancillary_data,
        :proposer_reward, :liveness, :proposer_bond
    )
""")

_UPDATE_MARKET_SQL = text("""
    UPDATE markets
    SET treasury = :treasury,
        fee_bps = :fee_bps,
        proposer_reward = :proposer_reward,
        liveness = :liveness,
        proposer_bond = :proposer_bond,
        betting_window_end = :betting_window_end,
        market_initialized = :market_initialized,
        request_timestamp = :request_timestamp,
        posted_reward = :posted_reward,
        price_requested = :price_requested,
        received_settlement_price = :received_settlement_price,
        settlement_price = :settlement_price,
        total_yes = :total_yes,
        total_no = :total_no,
        paused = :paused,
        dispute_count = :dispute_count
    WHERE id = :id
""")

_UPSERT_POSITION_SQL = text("""
    INSERT INTO positions (market_id, address, bets_yes, bets_no, claimed)
    VALUES (:market_id, :address, :bets_yes, :bets_no, :claimed)
    ON CONFLICT (market_id, address)
    DO UPDATE SET bets_yes = EXCLUDED.bets_yes,
                  bets_no = EXCLUDED.bets_no,
                  claimed = EXCLUDED.claimed
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (market_id, entry_type, from_address, to_address, amount, asset, reference)
    VALUES (:market_id, :entry_type, :from_address, :to_address, :amount, :asset, :reference)
""")

_INSERT_EVENT_SQL = text("""
    INSERT INTO market_events (market_id, event_type, payload)
    VALUES (:market_id, :event_type, :payload)
""")

_LIST_EVENTS_SQL = text("""
    SELECT market_id, event_type, payload, created_at
    FROM market_events
    WHERE market_id = :market_id
    ORDER BY id DESC
    LIMIT :limit
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_market(row: Any, position_rows: list[Any]) -> MarketState:
    positions = {
        r.address: Position(
            address=r.address,
            bets_yes=int(r.bets_yes),
            bets_no=int(r.bets_no),
            claimed=r.claimed,
        )
        for r in position_rows
    }
    return MarketState(
        market_id=row.id,
        pair_name=row.pair_name,
        owner=row.owner_address,
        treasury=row.treasury,
        fee_bps=row.fee_bps,
        collateral=row.collateral,
        custody=row.custody,
        oracle=row.oracle,
        price_identifier=bytes(row.price_identifier),
        custom_ancillary_data=bytes(row.custom_ancillary_data),
        proposer_reward=int(row.proposer_reward),
        liveness=int(row.liveness),
        proposer_bond=int(row.proposer_bond),
        betting_window_end=int(row.betting_window_end),
        market_initialized=row.market_initialized,
        request_timestamp=int(row.request_timestamp),
        posted_reward=int(row.posted_reward),
        price_requested=row.price_requested,
        received_settlement_price=row.received_settlement_price,
        settlement_price=int(row.settlement_price) if row.settlement_price is not None else None,
        total_yes=int(row.total_yes),
        total_no=int(row.total_no),
        paused=row.paused,
        dispute_count=row.dispute_count,
        positions=positions,
        created_at=row.created_at,
    )


def _market_params(state: MarketState) -> dict[str, Any]:
    return {
        "id": state.market_id,
        "pair_name": state.pair_name,
        "owner_address": state.owner,
        "treasury": state.treasury,
        "fee_bps": state.fee_bps,
        "collateral": state.collateral,
        "custody": state.custody,
        "oracle": state.oracle,
        "price_identifier": state.price_identifier,
        "custom_ancillary_data": state.custom_ancillary_data,
        "proposer_reward": state.proposer_reward,
        "liveness": state.liveness,
        "proposer_bond": state.proposer_bond,
        "betting_window_end": state.betting_window_end,
        "market_initialized": state.market_initialized,
        "request_timestamp": state.request_timestamp,
        "posted_reward": state.posted_reward,
        "price_requested": state.price_requested,
        "received_settlement_price": state.received_settlement_price,
        "settlement_price": state.settlement_price,
        "total_yes": state.total_yes,
        "total_no": state.total_no,
        "paused": state.paused,
        "dispute_count": state.dispute_count,
    }


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class MarketRepository:
    """Runs inside the caller's transaction; never commits."""

    async def get_market(self, db: AsyncSession, market_id: str) -> MarketState | None:
        row = (await db.execute(_GET_MARKET_SQL, {"market_id": market_id})).fetchone()
        if row is None:
            return None
        position_rows = (
            await db.execute(_GET_POSITIONS_SQL, {"market_id": market_id})
        ).fetchall()
        return _row_to_market(row, list(position_rows))

    async def insert_market(self, db: AsyncSession, state: MarketState) -> None:
        params = _market_params(state)
        await db.execute(
            _INSERT_MARKET_SQL,
            {
                k: params[k]
                for k in (
                    "id", "pair_name", "owner_address", "treasury", "fee_bps",
                    "collateral", "custody", "oracle", "price_identifier",
                    "custom_ancillary_data", "proposer_reward", "liveness",
                    "proposer_bond",
                )
            },
        )

    async def save_market(self, db: AsyncSession, state: MarketState) -> None:
        params = _market_params(state)
        for key in ("pair_name", "owner_address", "collateral", "custody", "oracle",
                    "price_identifier", "custom_ancillary_data"):
            params.pop(key)
        await db.execute(_UPDATE_MARKET_SQL, params)

    async def save_positions(
        self, db: AsyncSession, market_id: str, positions: list[Position]
    ) -> None:
        for pos in positions:
            await db.execute(
                _UPSERT_POSITION_SQL,
                {
                    "market_id": market_id,
                    "address": pos.address,
                    "bets_yes": pos.bets_yes,
                    "bets_no": pos.bets_no,
                    "claimed": pos.claimed,
                },
            )

    async def append_ledger_entries(
        self, db: AsyncSession, entries: list[LedgerEntry]
    ) -> None:
        for e in entries:
            await db.execute(
                _INSERT_LEDGER_SQL,
                {
                    "market_id": e.market_id,
                    "entry_type": e.entry_type,
                    "from_address": e.from_address,
                    "to_address": e.to_address,
                    "amount": e.amount,
                    "asset": e.asset,
                    "reference": e.reference,
                },
            )

    async def append_events(self, db: AsyncSession, events: list[MarketEvent]) -> None:
        for ev in events:
            await db.execute(
                _INSERT_EVENT_SQL,
                {
                    "market_id": ev.market_id,
                    "event_type": ev.event_type,
                    "payload": json.dumps(ev.payload),
                },
            )

    async def list_events(
        self, db: AsyncSession, market_id: str, limit: int
    ) -> list[MarketEvent]:
        rows = (
            await db.execute(_LIST_EVENTS_SQL, {"market_id": market_id, "limit": limit})
        ).fetchall()
        return [
            MarketEvent(
                market_id=r.market_id,
                event_type=r.event_type,
                payload=r.payload if isinstance(r.payload, dict) else json.loads(r.payload),
                created_at=r.created_at,
            )
            for r in rows
        ]
