"""Payout calculator — pure, integer-only.

TIE  : refund both sides in full, no redistribution.
YES  : winners split the whole pot pro rata, floor-rounded.
       No YES stake at all -> the NO pool is swept to the treasury.
NO   : mirror of YES.
Rounding dust stays in custody.
"""

from dataclasses import dataclass

from src.pm_common.enums import BetSide, SettlementOutcome
from src.pm_common.errors import NoWinningStakeError
from src.pm_common.fixed_point import HALF_SCALE, SCALE, mul_div_floor


@dataclass(frozen=True)
class Payout:
    outcome: SettlementOutcome
    amount: int
    sweep: int = 0
    swept_side: BetSide | None = None


def outcome_of(settlement_price: int) -> SettlementOutcome:
    if settlement_price == HALF_SCALE:
        return SettlementOutcome.TIE
    if settlement_price == SCALE:
        return SettlementOutcome.YES
    return SettlementOutcome.NO


def calculate_payout(
    settlement_price: int,
    total_yes: int,
    total_no: int,
    caller_yes: int,
    caller_no: int,
    address: str = "",
) -> Payout:
    outcome = outcome_of(settlement_price)
    if outcome == SettlementOutcome.TIE:
        return Payout(outcome=outcome, amount=caller_yes + caller_no)

    if outcome == SettlementOutcome.YES:
        winning_total, losing_total = total_yes, total_no
        caller_winning, winning_side, losing_side = caller_yes, BetSide.YES, BetSide.NO
    else:
        winning_total, losing_total = total_no, total_yes
        caller_winning, winning_side, losing_side = caller_no, BetSide.NO, BetSide.YES

    if winning_total == 0:
        return Payout(outcome=outcome, amount=0, sweep=losing_total, swept_side=losing_side)
    if caller_winning == 0:
        raise NoWinningStakeError(address, winning_side.value)
    amount = mul_div_floor(caller_winning, winning_total + losing_total, winning_total)
    return Payout(outcome=outcome, amount=amount)
