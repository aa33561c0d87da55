"""Domain models for pm_market — pure dataclasses, no I/O.

MarketState is the single aggregate every engine operation receives by
reference. Amounts are ints in the collateral's smallest unit; prices are
SCALE-d ints (see pm_common.fixed_point).
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.pm_common.enums import MarketPhase


@dataclass
class Position:
    address: str
    bets_yes: int = 0   # net of fee
    bets_no: int = 0    # net of fee
    claimed: bool = False


@dataclass
class MarketState:
    market_id: str
    pair_name: str
    owner: str
    treasury: str
    fee_bps: int
    collateral: str                 # collateral asset address
    custody: str                    # market's own address at the collateral asset
    oracle: str                     # only sender allowed to call back
    price_identifier: bytes
    custom_ancillary_data: bytes
    proposer_reward: int = 0
    liveness: int = 7200            # seconds
    proposer_bond: int = 0
    betting_window_end: int = 0     # unix seconds
    market_initialized: bool = False
    request_timestamp: int = 0      # current oracle round id
    posted_reward: int = 0          # reward funded for the open round
    price_requested: bool = False
    received_settlement_price: bool = False
    settlement_price: int | None = None
    total_yes: int = 0
    total_no: int = 0
    paused: bool = False
    dispute_count: int = 0
    positions: dict[str, Position] = field(default_factory=dict)
    created_at: datetime | None = None

    def position(self, address: str) -> Position:
        """Return the caller's position, creating an empty one on first touch."""
        pos = self.positions.get(address)
        if pos is None:
            pos = Position(address=address)
            self.positions[address] = pos
        return pos

    def phase(self, now: int) -> MarketPhase:
        if not self.market_initialized:
            return MarketPhase.CREATED
        if self.received_settlement_price:
            return MarketPhase.SETTLED
        if now <= self.betting_window_end:
            return MarketPhase.BETTING_OPEN
        return MarketPhase.AWAITING_SETTLEMENT

    def snapshot(self) -> "MarketState":
        return copy.deepcopy(self)

    def restore(self, snapshot: "MarketState") -> None:
        """Overwrite this aggregate in place so outside references stay valid."""
        self.__dict__.update(copy.deepcopy(snapshot).__dict__)


@dataclass
class LedgerEntry:
    market_id: str
    entry_type: str                  # LedgerEntryType value
    from_address: str
    to_address: str
    amount: int                      # > 0, direction is from -> to
    asset: str
    reference: str | None = None
    created_at: datetime | None = None


@dataclass
class MarketEvent:
    market_id: str
    event_type: str                  # MarketEventType value
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
