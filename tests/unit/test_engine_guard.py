"""Reentrancy rejection and all-or-nothing rollback around engine entry points."""
import pytest

from src.pm_clearing.infrastructure.collateral_memory import InMemoryCollateralAsset
from src.pm_clearing.infrastructure.ledger import CollateralLedger
from src.pm_common.enums import BetSide
from src.pm_common.errors import (
    InsufficientAllowanceError,
    NoWinningStakeError,
    OracleUnavailableError,
    ReentrantCallError,
)
from src.pm_common.fixed_point import SCALE
from src.pm_settlement.engine.engine import SettlementEngine
from tests.support import (
    ALICE,
    ANCILLARY,
    BOB,
    COLLATERAL,
    CUSTODY,
    IDENTIFIER,
    ORACLE,
    OWNER,
    T0,
    RecordingOracle,
    make_market,
)


class ReentrantAsset(InMemoryCollateralAsset):
    """Collateral whose transfer hook calls straight back into the engine."""

    def __init__(self, address: str) -> None:
        super().__init__(address)
        self.engine: SettlementEngine | None = None
        self.reentry_errors: list[ReentrantCallError] = []
        self.observed: list[tuple[bool, int, int]] = []

    async def transfer(self, sender: str, recipient: str, amount: int) -> None:
        if self.engine is not None:
            pos = self.engine.state.positions[recipient]
            self.observed.append((pos.claimed, pos.bets_yes, self.engine.state.total_yes))
            try:
                await self.engine.claim_winnings(recipient)
            except ReentrantCallError as exc:
                self.reentry_errors.append(exc)
        await super().transfer(sender, recipient, amount)


@pytest.fixture
def hostile_asset() -> ReentrantAsset:
    return ReentrantAsset(COLLATERAL)


@pytest.fixture
def settled_engine(hostile_asset, clock):
    async def _build() -> SettlementEngine:
        state = make_market()
        ledger = CollateralLedger(state.market_id, state.custody, hostile_asset)
        engine = SettlementEngine(state, ledger, RecordingOracle(hostile_asset), clock=clock)
        await engine.initialize(OWNER, 60)
        for who, side, amount in ((ALICE, BetSide.YES, 100), (BOB, BetSide.NO, 50)):
            hostile_asset.mint(who, amount)
            await hostile_asset.approve(who, CUSTODY, amount)
            await engine.place_bet(who, side, amount)
        clock.advance(61)
        await engine.on_settled(ORACLE, IDENTIFIER, T0, ANCILLARY, SCALE)
        return engine

    return _build


class TestReentrancy:
    async def test_reentrant_claim_is_rejected(self, settled_engine, hostile_asset):
        engine = await settled_engine()
        hostile_asset.engine = engine

        payout = await engine.claim_winnings(ALICE)

        assert payout.amount == 150
        assert len(hostile_asset.reentry_errors) == 1
        assert await hostile_asset.balance_of(ALICE) == 150

    async def test_callee_sees_final_state(self, settled_engine, hostile_asset):
        engine = await settled_engine()
        hostile_asset.engine = engine

        await engine.claim_winnings(ALICE)

        # claimed flag set and stake zeroed before the transfer ran
        assert hostile_asset.observed == [(True, 0, 100)]

    async def test_guard_released_after_rejection(self, settled_engine, hostile_asset):
        engine = await settled_engine()
        hostile_asset.engine = engine
        await engine.claim_winnings(ALICE)
        hostile_asset.engine = None

        # the flag is cleared: a fresh top-level call proceeds normally
        with pytest.raises(NoWinningStakeError):
            await engine.claim_winnings(BOB)


class TestRollback:
    async def test_failed_initialize_restores_state(self, make_engine, oracle):
        engine = make_engine()
        oracle.fail_on = "set_callbacks"

        with pytest.raises(OracleUnavailableError):
            await engine.initialize(OWNER, 60)

        state = engine.state
        assert state.market_initialized is False
        assert state.price_requested is False
        assert state.request_timestamp == 0
        assert engine.drain_events() == []
        assert engine.ledger.drain() == []

        oracle.fail_on = None
        await engine.initialize(OWNER, 60)
        assert engine.state.market_initialized is True

    async def test_failed_dispute_keeps_old_round(self, make_engine, oracle):
        engine = make_engine()
        await engine.initialize(OWNER, 60)
        oracle.fail_on = "request_price"

        with pytest.raises(OracleUnavailableError):
            await engine.on_disputed(ORACLE, IDENTIFIER, T0, ANCILLARY, 0)

        assert engine.state.request_timestamp == T0
        assert engine.state.dispute_count == 0

    async def test_restore_keeps_aggregate_identity(self, make_engine):
        engine = make_engine()
        state = engine.state
        await engine.initialize(OWNER, 60)
        with pytest.raises(InsufficientAllowanceError):
            await engine.place_bet(ALICE, BetSide.YES, 10)  # not funded
        assert engine.state is state

    async def test_failed_initialize_returns_reward(self, make_engine, oracle, fund, asset):
        engine = make_engine(proposer_reward=10)
        await fund(OWNER, 10)
        oracle.fail_on = "set_callbacks"

        with pytest.raises(OracleUnavailableError):
            await engine.initialize(OWNER, 60)

        # pulled into custody and on to the oracle, then rewound
        assert await asset.balance_of(OWNER) == 10
        assert await asset.balance_of(CUSTODY) == 0
        assert await asset.balance_of(ORACLE) == 0
        assert await asset.allowance(OWNER, CUSTODY) == 10
        assert await asset.allowance(CUSTODY, ORACLE) == 0

        oracle.fail_on = None
        await engine.initialize(OWNER, 60)
        assert await asset.balance_of(ORACLE) == 10
