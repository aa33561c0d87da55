"""Unit tests for the MarketState aggregate."""
from src.pm_common.enums import MarketPhase
from src.pm_market.domain.models import Position
from tests.support import ALICE, T0, make_market


class TestPhase:
    def test_created(self):
        assert make_market().phase(T0) == MarketPhase.CREATED

    def test_betting_open_inclusive_of_window_end(self):
        state = make_market(market_initialized=True, betting_window_end=T0)
        assert state.phase(T0) == MarketPhase.BETTING_OPEN
        assert state.phase(T0 + 1) == MarketPhase.AWAITING_SETTLEMENT

    def test_settled_wins_over_clock(self):
        state = make_market(
            market_initialized=True, betting_window_end=T0 + 100, received_settlement_price=True
        )
        assert state.phase(T0) == MarketPhase.SETTLED


class TestPosition:
    def test_lazy_creation(self):
        state = make_market()
        pos = state.position(ALICE)
        assert pos == Position(address=ALICE)
        assert state.position(ALICE) is pos


class TestSnapshot:
    def test_restore_in_place(self):
        state = make_market(total_yes=10)
        state.position(ALICE).bets_yes = 10
        snap = state.snapshot()

        state.total_yes = 99
        state.position(ALICE).bets_yes = 99
        state.position("bob")
        state.restore(snap)

        assert state.total_yes == 10
        assert state.positions[ALICE].bets_yes == 10
        assert "bob" not in state.positions

    def test_snapshot_is_deep(self):
        state = make_market()
        state.position(ALICE)
        snap = state.snapshot()
        state.positions[ALICE].claimed = True
        assert snap.positions[ALICE].claimed is False
