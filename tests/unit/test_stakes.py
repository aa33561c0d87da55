"""Unit tests for fee split, stake accounting and claim-time state effects."""
import pytest

from src.pm_clearing.domain.fee import split_stake
from src.pm_clearing.domain.settlement import settle_claim
from src.pm_clearing.domain.stakes import check_can_bet, pool_sums, record_stake
from src.pm_common.enums import BetSide
from src.pm_common.errors import (
    AlreadyClaimedError,
    BettingClosedError,
    InvalidAmountError,
    MarketNotInitializedError,
    MarketPausedError,
    SettlementNotReceivedError,
)
from src.pm_common.fixed_point import SCALE
from tests.support import ALICE, BOB, T0, make_market


def _open_market(**kwargs):
    return make_market(market_initialized=True, betting_window_end=T0 + 100, **kwargs)


class TestSplitStake:
    @pytest.mark.parametrize(
        "amount,bps,expected",
        [
            (1000, 0, (1000, 0)),
            (1000, 250, (975, 25)),
            (999, 1000, (900, 99)),
            (1, 9999, (1, 0)),
        ],
    )
    def test_split(self, amount, bps, expected):
        assert split_stake(amount, bps) == expected

    def test_net_strictly_less_when_fee_positive(self):
        net, fee = split_stake(10_000, 1)
        assert fee == 1
        assert net < 10_000


class TestCheckCanBet:
    def test_order_paused_first(self):
        state = make_market(paused=True)
        with pytest.raises(MarketPausedError):
            check_can_bet(state, 0, T0)

    def test_not_initialized(self):
        with pytest.raises(MarketNotInitializedError):
            check_can_bet(make_market(), 10, T0)

    def test_window_closed(self):
        with pytest.raises(BettingClosedError):
            check_can_bet(_open_market(), 10, T0 + 101)

    def test_amount_positive(self):
        with pytest.raises(InvalidAmountError):
            check_can_bet(_open_market(), -5, T0)


class TestRecordStake:
    def test_sum_of_positions_matches_pools(self):
        state = _open_market(fee_bps=37)
        bets = [
            (ALICE, BetSide.YES, 1234),
            (BOB, BetSide.NO, 999),
            (ALICE, BetSide.NO, 7),
            (BOB, BetSide.YES, 50_001),
        ]
        for who, side, amount in bets:
            record_stake(state, who, side, amount, T0)
        assert pool_sums(state) == (state.total_yes, state.total_no)

    def test_receipt_values(self):
        state = _open_market(fee_bps=100)
        r = record_stake(state, ALICE, BetSide.YES, 500, T0)
        assert (r.address, r.side, r.amount, r.net, r.fee) == (ALICE, BetSide.YES, 500, 495, 5)
        assert state.positions[ALICE].bets_yes == 495


class TestSettleClaim:
    def _settled(self):
        state = _open_market()
        record_stake(state, ALICE, BetSide.YES, 100, T0)
        record_stake(state, BOB, BetSide.NO, 50, T0)
        state.received_settlement_price = True
        state.settlement_price = SCALE
        return state

    def test_marks_claimed_and_zeroes(self):
        state = self._settled()
        payout = settle_claim(state, ALICE)
        pos = state.positions[ALICE]
        assert payout.amount == 150
        assert pos.claimed is True
        assert (pos.bets_yes, pos.bets_no) == (0, 0)
        # pool totals are not reduced by ordinary claims
        assert (state.total_yes, state.total_no) == (100, 50)

    def test_second_claim_rejected(self):
        state = self._settled()
        settle_claim(state, ALICE)
        with pytest.raises(AlreadyClaimedError):
            settle_claim(state, ALICE)

    def test_requires_settlement(self):
        state = _open_market()
        with pytest.raises(SettlementNotReceivedError):
            settle_claim(state, ALICE)

    def test_sweep_zeroes_losing_total(self):
        state = _open_market()
        record_stake(state, BOB, BetSide.NO, 50, T0)
        state.received_settlement_price = True
        state.settlement_price = SCALE
        payout = settle_claim(state, BOB)
        assert payout.sweep == 50
        assert state.total_no == 0
        assert state.positions[BOB].claimed is True
