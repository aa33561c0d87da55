"""Stake accounting — betting-window policy and position/pool bookkeeping.

Pure state mutation on MarketState; value movement belongs to the ledger.
"""

from dataclasses import dataclass

from src.pm_clearing.domain.fee import split_stake
from src.pm_common.enums import BetSide
from src.pm_common.errors import (
    BettingClosedError,
    InvalidAmountError,
    MarketNotInitializedError,
    MarketPausedError,
)
from src.pm_market.domain.models import MarketState


@dataclass(frozen=True)
class StakeReceipt:
    address: str
    side: BetSide
    amount: int
    net: int
    fee: int


def check_can_bet(state: MarketState, amount: int, now: int) -> None:
    if state.paused:
        raise MarketPausedError(state.market_id)
    if not state.market_initialized:
        raise MarketNotInitializedError(state.market_id)
    if now > state.betting_window_end:
        raise BettingClosedError(state.market_id, state.betting_window_end)
    if amount <= 0:
        raise InvalidAmountError(amount)


def record_stake(
    state: MarketState, address: str, side: BetSide, amount: int, now: int
) -> StakeReceipt:
    """Validate and book a bet. Caller moves the collateral afterwards."""
    check_can_bet(state, amount, now)
    net, fee = split_stake(amount, state.fee_bps)
    pos = state.position(address)
    if side == BetSide.YES:
        pos.bets_yes += net
        state.total_yes += net
    else:
        pos.bets_no += net
        state.total_no += net
    return StakeReceipt(address=address, side=side, amount=amount, net=net, fee=fee)


def pool_sums(state: MarketState) -> tuple[int, int]:
    """Sum of per-position stakes, (yes, no)."""
    yes = sum(p.bets_yes for p in state.positions.values())
    no = sum(p.bets_no for p in state.positions.values())
    return yes, no
