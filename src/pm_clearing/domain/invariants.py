"""Market pool invariant checks.

INV-1: sum(bets_yes) == total_yes and sum(bets_no) == total_no
       (holds until the first claim; claims zero positions, not totals)
INV-2: 0 <= fee_bps <= MAX_FEE_BPS and treasury is set
INV-3: custody balance covers both pools (until the first claim)
INV-4: a resolved settlement price is one of {0, SCALE/2, SCALE}
"""

import logging

from src.pm_clearing.domain.stakes import pool_sums
from src.pm_common.fixed_point import HALF_SCALE, MAX_FEE_BPS, SCALE
from src.pm_market.domain.models import MarketState

logger = logging.getLogger(__name__)


def verify_market_invariants(
    state: MarketState, custody_balance: int | None = None
) -> list[str]:
    """Return a list of violation strings (empty when the market is healthy)."""
    violations: list[str] = []
    any_claimed = any(p.claimed for p in state.positions.values())

    if not any_claimed:
        yes, no = pool_sums(state)
        if yes != state.total_yes:
            violations.append(f"INV-1 violated: sum(bets_yes)={yes} != total_yes={state.total_yes}")
        if no != state.total_no:
            violations.append(f"INV-1 violated: sum(bets_no)={no} != total_no={state.total_no}")
        if custody_balance is not None and custody_balance < state.total_yes + state.total_no:
            violations.append(
                f"INV-3 violated: custody={custody_balance} < pools="
                f"{state.total_yes + state.total_no}"
            )

    if not (0 <= state.fee_bps <= MAX_FEE_BPS):
        violations.append(f"INV-2 violated: fee_bps={state.fee_bps}")
    if not state.treasury:
        violations.append("INV-2 violated: treasury is empty")

    if state.received_settlement_price and state.settlement_price not in (0, HALF_SCALE, SCALE):
        violations.append(f"INV-4 violated: settlement_price={state.settlement_price}")

    for msg in violations:
        logger.error("market=%s %s", state.market_id, msg)
    if not violations:
        logger.debug("Invariants OK: market=%s", state.market_id)
    return violations
