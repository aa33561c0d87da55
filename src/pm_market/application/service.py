"""MarketApplicationService — per-market serialization around SettlementEngine.

Every mutating call runs under the market's asyncio.Lock, inside one DB
transaction: the engine mutates the cached aggregate, then the market row,
touched positions, ledger entries and events are flushed and committed
together. Any failure rolls the transaction back, rewinds in-memory
collateral moves and evicts the cached engine; the next request reloads it
from the database.
Locks are kept only for markets that exist.

Single-process: the lock and the cache are per process.
"""

import asyncio
import logging
import uuid
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_clearing.domain.collateral import CollateralAsset
from src.pm_clearing.infrastructure.assets import resolve_asset
from src.pm_clearing.infrastructure.collateral_memory import journal_scope
from src.pm_clearing.infrastructure.ledger import CollateralLedger
from src.pm_common.database import session_scope
from src.pm_common.datetime_utils import unix_now, utc_now
from src.pm_common.enums import BetSide, MarketEventType
from src.pm_common.errors import InvalidTreasuryError, MarketNotFoundError
from src.pm_common.fixed_point import validate_fee_bps
from src.pm_market.application.schemas import (
    BetResponse,
    ClaimResponse,
    CreateMarketRequest,
    EventItem,
    EventListResponse,
    MarketDetail,
    PositionResponse,
)
from src.pm_market.domain.models import MarketEvent, MarketState, Position
from src.pm_market.domain.repository import MarketRepositoryProtocol
from src.pm_market.infrastructure.persistence import MarketRepository
from src.pm_oracle.domain.models import DEFAULT_PRICE_IDENTIFIER, default_ancillary_data
from src.pm_oracle.domain.ports import PriceOracle
from src.pm_oracle.infrastructure.http_client import HttpOptimisticOracle
from src.pm_settlement.engine.engine import SettlementEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


def new_market_id() -> str:
    return f"mkt_{uuid.uuid4().hex[:16]}"


class MarketApplicationService:
    def __init__(
        self,
        repo: MarketRepositoryProtocol | None = None,
        oracle: PriceOracle | None = None,
        asset_resolver: Callable[[str], CollateralAsset] | None = None,
        clock: Callable[[], int] = unix_now,
    ) -> None:
        self._repo: MarketRepositoryProtocol = repo or MarketRepository()
        self._oracle: PriceOracle = oracle or HttpOptimisticOracle()
        self._resolve_asset = asset_resolver or resolve_asset
        self._clock = clock
        self._engines: dict[str, SettlementEngine] = {}
        self._market_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @property
    def repo(self) -> MarketRepositoryProtocol:
        return self._repo

    def resolve_asset(self, address: str) -> CollateralAsset:
        return self._resolve_asset(address)

    def now(self) -> int:
        return self._clock()

    def describe(self, state: MarketState) -> MarketDetail:
        return MarketDetail.from_domain(state, state.phase(self._clock()))

    # ------------------------------------------------------------------
    # Engine cache
    # ------------------------------------------------------------------

    async def _get_engine(self, db: AsyncSession, market_id: str) -> SettlementEngine:
        engine = self._engines.get(market_id)
        if engine is None:
            state = await self._repo.get_market(db, market_id)
            if state is None:
                raise MarketNotFoundError(market_id)
            engine = self._build_engine(state)
            self._engines[market_id] = engine
        return engine

    def _build_engine(self, state: MarketState) -> SettlementEngine:
        ledger = CollateralLedger(
            state.market_id, state.custody, self._resolve_asset(state.collateral)
        )
        return SettlementEngine(
            state,
            ledger,
            self._oracle,
            clock=self._clock,
            dispute_warn_threshold=settings.DISPUTE_WARN_THRESHOLD,
        )

    def evict(self, market_id: str) -> None:
        self._engines.pop(market_id, None)

    async def execute(
        self,
        db: AsyncSession,
        market_id: str,
        op: Callable[[SettlementEngine], Awaitable[T]],
        touched: Iterable[str] = (),
    ) -> tuple[T, MarketState]:
        """Run `op` against the market's engine and commit everything it did.

        `touched` lists the addresses whose positions `op` may have changed.
        Returns the op's result and the (committed) aggregate.
        """
        async with self._market_locks[market_id]:
            with session_scope(db), journal_scope() as transfers:
                transfers_mark = transfers.mark()
                try:
                    engine = await self._get_engine(db, market_id)
                    result = await op(engine)
                    await self._flush(db, engine, touched)
                    await db.commit()
                except MarketNotFoundError:
                    await db.rollback()
                    self._market_locks.pop(market_id, None)
                    raise
                except Exception:
                    await db.rollback()
                    transfers.rewind(transfers_mark)
                    self.evict(market_id)
                    raise
            return result, engine.state

    async def _flush(
        self, db: AsyncSession, engine: SettlementEngine, touched: Iterable[str]
    ) -> None:
        state = engine.state
        await self._repo.save_market(db, state)
        positions = [state.positions[a] for a in touched if a in state.positions]
        if positions:
            await self._repo.save_positions(db, state.market_id, positions)
        entries = engine.ledger.drain()
        if entries:
            await self._repo.append_ledger_entries(db, entries)
        events = engine.drain_events()
        if events:
            await self._repo.append_events(db, events)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    async def create_market(
        self, db: AsyncSession, owner: str, req: CreateMarketRequest
    ) -> MarketDetail:
        validate_fee_bps(req.fee_bps)
        if not req.treasury:
            raise InvalidTreasuryError()

        market_id = new_market_id()
        state = MarketState(
            market_id=market_id,
            pair_name=req.pair_name,
            owner=owner,
            treasury=req.treasury,
            fee_bps=req.fee_bps,
            collateral=req.collateral or settings.COLLATERAL_ASSET_ADDRESS,
            custody=f"{settings.MARKET_CUSTODY_PREFIX}{market_id}",
            oracle=self._oracle.address,
            price_identifier=(
                req.price_identifier.encode() if req.price_identifier
                else DEFAULT_PRICE_IDENTIFIER
            ),
            custom_ancillary_data=(
                req.ancillary_data.encode() if req.ancillary_data
                else default_ancillary_data(req.pair_name)
            ),
            proposer_reward=(
                req.proposer_reward if req.proposer_reward is not None
                else settings.DEFAULT_PROPOSER_REWARD
            ),
            liveness=req.liveness or settings.DEFAULT_LIVENESS_SECONDS,
            proposer_bond=(
                req.proposer_bond if req.proposer_bond is not None
                else settings.DEFAULT_PROPOSER_BOND
            ),
            created_at=utc_now(),
        )
        event = MarketEvent(
            market_id=market_id,
            event_type=MarketEventType.MARKET_CREATED.value,
            payload={"owner": owner, "pair_name": req.pair_name, "fee_bps": req.fee_bps},
        )
        try:
            await self._repo.insert_market(db, state)
            await self._repo.append_events(db, [event])
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Market created: market=%s owner=%s pair=%s", market_id, owner, req.pair_name)
        return self.describe(state)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _load(self, db: AsyncSession, market_id: str) -> MarketState:
        state = await self._repo.get_market(db, market_id)
        if state is None:
            raise MarketNotFoundError(market_id)
        return state

    async def get_market(self, db: AsyncSession, market_id: str) -> MarketDetail:
        state = await self._load(db, market_id)
        return self.describe(state)

    async def get_position(
        self, db: AsyncSession, market_id: str, address: str
    ) -> PositionResponse:
        state = await self._load(db, market_id)
        pos = state.positions.get(address) or Position(address=address)
        return PositionResponse.from_domain(market_id, pos)

    async def list_events(
        self, db: AsyncSession, market_id: str, limit: int
    ) -> EventListResponse:
        await self._load(db, market_id)
        events = await self._repo.list_events(db, market_id, limit)
        return EventListResponse(
            market_id=market_id, items=[EventItem.from_domain(e) for e in events]
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(
        self, db: AsyncSession, market_id: str, caller: str, betting_duration: int
    ) -> MarketDetail:
        _, state = await self.execute(
            db, market_id, lambda e: e.initialize(caller, betting_duration)
        )
        return self.describe(state)

    async def place_bet(
        self, db: AsyncSession, market_id: str, caller: str, side: BetSide, amount: int
    ) -> BetResponse:
        receipt, state = await self.execute(
            db, market_id, lambda e: e.place_bet(caller, side, amount), touched=[caller]
        )
        return BetResponse.from_receipt(state, receipt)

    async def claim(self, db: AsyncSession, market_id: str, caller: str) -> ClaimResponse:
        payout, _ = await self.execute(
            db, market_id, lambda e: e.claim_winnings(caller), touched=[caller]
        )
        return ClaimResponse.from_payout(market_id, caller, payout)

    # ------------------------------------------------------------------
    # Oracle callbacks
    # ------------------------------------------------------------------

    async def on_settled(
        self,
        db: AsyncSession,
        market_id: str,
        sender: str,
        identifier: bytes,
        timestamp: int,
        ancillary_data: bytes,
        price: int,
    ) -> bool:
        applied, _ = await self.execute(
            db,
            market_id,
            lambda e: e.on_settled(sender, identifier, timestamp, ancillary_data, price),
        )
        return applied

    async def on_disputed(
        self,
        db: AsyncSession,
        market_id: str,
        sender: str,
        identifier: bytes,
        timestamp: int,
        ancillary_data: bytes,
        refund: int,
    ) -> MarketDetail:
        _, state = await self.execute(
            db,
            market_id,
            lambda e: e.on_disputed(sender, identifier, timestamp, ancillary_data, refund),
        )
        return self.describe(state)


_service: MarketApplicationService | None = None


def get_market_service() -> MarketApplicationService:
    """Process-wide service; routers share one engine cache and one lock table."""
    global _service  # noqa: PLW0603
    if _service is None:
        _service = MarketApplicationService()
    return _service
