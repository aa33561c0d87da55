# src/pm_admin/application/service.py
"""Admin application service.

Owner-only market setters run through the market service's `execute`, so
they share the market lock, the transaction and the event journal with the
lifecycle operations. Stats and invariant checks are read-only.
"""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_clearing.domain.invariants import verify_market_invariants
from src.pm_common.database import session_scope
from src.pm_common.errors import MarketNotFoundError
from src.pm_market.application.schemas import MarketDetail
from src.pm_market.application.service import MarketApplicationService, get_market_service

_STATS_SQL = text("""
    SELECT entry_type, COUNT(*) AS entries, COALESCE(SUM(amount), 0) AS total
    FROM ledger_entries
    WHERE market_id = :market_id
    GROUP BY entry_type
""")


class AdminService:
    def __init__(self, markets: MarketApplicationService | None = None) -> None:
        self._markets = markets

    @property
    def markets(self) -> MarketApplicationService:
        # Resolved lazily so the admin and market routers share one engine cache.
        return self._markets or get_market_service()

    async def set_fee_bps(
        self, db: AsyncSession, market_id: str, caller: str, fee_bps: int
    ) -> MarketDetail:
        _, state = await self.markets.execute(
            db, market_id, lambda e: e.set_fee_bps(caller, fee_bps)
        )
        return self.markets.describe(state)

    async def set_treasury(
        self, db: AsyncSession, market_id: str, caller: str, treasury: str
    ) -> MarketDetail:
        _, state = await self.markets.execute(
            db, market_id, lambda e: e.set_treasury(caller, treasury)
        )
        return self.markets.describe(state)

    async def pause(self, db: AsyncSession, market_id: str, caller: str) -> MarketDetail:
        _, state = await self.markets.execute(db, market_id, lambda e: e.pause(caller))
        return self.markets.describe(state)

    async def unpause(self, db: AsyncSession, market_id: str, caller: str) -> MarketDetail:
        _, state = await self.markets.execute(db, market_id, lambda e: e.unpause(caller))
        return self.markets.describe(state)

    async def set_oracle_params(
        self,
        db: AsyncSession,
        market_id: str,
        caller: str,
        proposer_reward: int | None = None,
        liveness: int | None = None,
        proposer_bond: int | None = None,
    ) -> MarketDetail:
        _, state = await self.markets.execute(
            db,
            market_id,
            lambda e: e.set_oracle_params(
                caller,
                proposer_reward=proposer_reward,
                liveness=liveness,
                proposer_bond=proposer_bond,
            ),
        )
        return self.markets.describe(state)

    async def rescue_tokens(
        self,
        db: AsyncSession,
        market_id: str,
        caller: str,
        asset_address: str,
        recipient: str,
        amount: int,
    ) -> dict[str, Any]:
        asset = self.markets.resolve_asset(asset_address)
        await self.markets.execute(
            db, market_id, lambda e: e.rescue_tokens(caller, asset, recipient, amount)
        )
        return {
            "market_id": market_id,
            "asset": asset_address,
            "recipient": recipient,
            "amount": amount,
        }

    async def get_market_stats(self, db: AsyncSession, market_id: str) -> dict[str, Any]:
        state = await self.markets.repo.get_market(db, market_id)
        if state is None:
            raise MarketNotFoundError(market_id)
        rows = (await db.execute(_STATS_SQL, {"market_id": market_id})).fetchall()
        by_type = {r.entry_type: (int(r.entries), int(r.total)) for r in rows}
        return {
            "market_id": market_id,
            "phase": state.phase(self.markets.now()).value,
            "participants": len(state.positions),
            "total_yes": state.total_yes,
            "total_no": state.total_no,
            "dispute_count": state.dispute_count,
            "ledger": {
                entry_type: {"entries": n, "total": total}
                for entry_type, (n, total) in sorted(by_type.items())
            },
        }

    async def verify_invariants(self, db: AsyncSession, market_id: str) -> dict[str, object]:
        """Run the per-market invariant checks against the persisted state."""
        state = await self.markets.repo.get_market(db, market_id)
        if state is None:
            raise MarketNotFoundError(market_id)
        asset = self.markets.resolve_asset(state.collateral)
        with session_scope(db):
            custody_balance = await asset.balance_of(state.custody)
        violations = verify_market_invariants(state, custody_balance)
        return {
            "market_id": market_id,
            "custody_balance": custody_balance,
            "ok": len(violations) == 0,
            "violations": violations,
        }
