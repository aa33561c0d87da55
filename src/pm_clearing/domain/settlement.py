"""Claim settlement — apply a payout to the market aggregate.

All state effects land here, before any collateral moves.
"""

from src.pm_clearing.domain.payout import Payout, calculate_payout
from src.pm_common.enums import BetSide
from src.pm_common.errors import (
    AlreadyClaimedError,
    MarketPausedError,
    SettlementNotReceivedError,
)
from src.pm_market.domain.models import MarketState


def settle_claim(state: MarketState, address: str) -> Payout:
    """Compute the caller's payout and apply every claim-time state effect.

    The caller is marked claimed and both stakes are zeroed on every branch,
    including TIE and the zero-payout sweep branch.
    """
    if state.paused:
        raise MarketPausedError(state.market_id)
    if not state.received_settlement_price or state.settlement_price is None:
        raise SettlementNotReceivedError(state.market_id)
    pos = state.position(address)
    if pos.claimed:
        raise AlreadyClaimedError(address)

    payout = calculate_payout(
        state.settlement_price,
        state.total_yes,
        state.total_no,
        pos.bets_yes,
        pos.bets_no,
        address=address,
    )

    if payout.swept_side == BetSide.YES:
        state.total_yes = 0
    elif payout.swept_side == BetSide.NO:
        state.total_no = 0

    pos.claimed = True
    pos.bets_yes = 0
    pos.bets_no = 0
    return payout
