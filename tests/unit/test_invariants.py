"""Unit tests for per-market invariant checks."""
from src.pm_clearing.domain.invariants import verify_market_invariants
from src.pm_common.fixed_point import SCALE
from tests.support import ALICE, make_market


class TestVerifyMarketInvariants:
    def test_healthy_market(self):
        state = make_market(total_yes=10)
        state.position(ALICE).bets_yes = 10
        assert verify_market_invariants(state, custody_balance=10) == []

    def test_pool_sum_mismatch(self):
        state = make_market(total_yes=11)
        state.position(ALICE).bets_yes = 10
        violations = verify_market_invariants(state)
        assert len(violations) == 1
        assert violations[0].startswith("INV-1")

    def test_custody_shortfall(self):
        state = make_market(total_no=5)
        state.position(ALICE).bets_no = 5
        violations = verify_market_invariants(state, custody_balance=4)
        assert any(v.startswith("INV-3") for v in violations)

    def test_pool_checks_skipped_after_first_claim(self):
        state = make_market(total_yes=10)
        state.position(ALICE).claimed = True
        assert verify_market_invariants(state, custody_balance=0) == []

    def test_fee_and_treasury(self):
        state = make_market(fee_bps=1001, treasury="")
        violations = verify_market_invariants(state)
        assert sum(v.startswith("INV-2") for v in violations) == 2

    def test_settlement_price_must_be_ternary(self):
        state = make_market(received_settlement_price=True, settlement_price=SCALE // 3)
        violations = verify_market_invariants(state)
        assert any(v.startswith("INV-4") for v in violations)
