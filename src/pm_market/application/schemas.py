"""Pydantic schemas for pm_market API requests/responses.

Byte fields (price identifier, ancillary data) travel as 0x-hex strings.
Amounts are plain ints in the collateral's smallest unit; prices are
SCALE-d ints, with a human-readable `*_display` twin.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from src.pm_clearing.domain.payout import Payout
from src.pm_clearing.domain.stakes import StakeReceipt
from src.pm_common.datetime_utils import unix_to_utc
from src.pm_common.encoding import to_hex
from src.pm_common.enums import BetSide, MarketPhase
from src.pm_common.fixed_point import price_to_display
from src.pm_market.domain.models import MarketEvent, MarketState, Position


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateMarketRequest(BaseModel):
    pair_name: str = Field(min_length=1, max_length=200)
    treasury: str
    fee_bps: int = 0
    collateral: str | None = None
    price_identifier: str | None = None        # plain text, defaults to YES_OR_NO_QUERY
    ancillary_data: str | None = None          # plain text question, defaults from pair_name
    proposer_reward: int | None = Field(None, ge=0)
    proposer_bond: int | None = Field(None, ge=0)
    liveness: int | None = Field(None, gt=0)


class InitializeRequest(BaseModel):
    betting_duration: int


class BetRequest(BaseModel):
    side: BetSide
    amount: int


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class MarketDetail(BaseModel):
    id: str
    pair_name: str
    phase: MarketPhase
    owner: str
    treasury: str
    fee_bps: int
    collateral: str
    custody: str
    oracle: str
    price_identifier: str
    ancillary_data: str
    proposer_reward: int
    posted_reward: int
    proposer_bond: int
    liveness: int
    market_initialized: bool
    betting_window_end: int
    betting_window_end_at: str | None
    request_timestamp: int
    price_requested: bool
    received_settlement_price: bool
    settlement_price: int | None
    settlement_price_display: str | None
    total_yes: int
    total_no: int
    paused: bool
    dispute_count: int

    @classmethod
    def from_domain(cls, m: MarketState, phase: MarketPhase) -> "MarketDetail":
        return cls(
            id=m.market_id,
            pair_name=m.pair_name,
            phase=phase,
            owner=m.owner,
            treasury=m.treasury,
            fee_bps=m.fee_bps,
            collateral=m.collateral,
            custody=m.custody,
            oracle=m.oracle,
            price_identifier=to_hex(m.price_identifier),
            ancillary_data=to_hex(m.custom_ancillary_data),
            proposer_reward=m.proposer_reward,
            posted_reward=m.posted_reward,
            proposer_bond=m.proposer_bond,
            liveness=m.liveness,
            market_initialized=m.market_initialized,
            betting_window_end=m.betting_window_end,
            betting_window_end_at=(
                unix_to_utc(m.betting_window_end).isoformat() if m.market_initialized else None
            ),
            request_timestamp=m.request_timestamp,
            price_requested=m.price_requested,
            received_settlement_price=m.received_settlement_price,
            settlement_price=m.settlement_price,
            settlement_price_display=(
                price_to_display(m.settlement_price) if m.settlement_price is not None else None
            ),
            total_yes=m.total_yes,
            total_no=m.total_no,
            paused=m.paused,
            dispute_count=m.dispute_count,
        )


class BetResponse(BaseModel):
    market_id: str
    address: str
    side: BetSide
    amount: int
    net: int
    fee: int
    total_yes: int
    total_no: int

    @classmethod
    def from_receipt(cls, m: MarketState, r: StakeReceipt) -> "BetResponse":
        return cls(
            market_id=m.market_id,
            address=r.address,
            side=r.side,
            amount=r.amount,
            net=r.net,
            fee=r.fee,
            total_yes=m.total_yes,
            total_no=m.total_no,
        )


class ClaimResponse(BaseModel):
    market_id: str
    address: str
    outcome: str
    payout: int
    swept_to_treasury: int

    @classmethod
    def from_payout(cls, market_id: str, address: str, p: Payout) -> "ClaimResponse":
        return cls(
            market_id=market_id,
            address=address,
            outcome=p.outcome.value,
            payout=p.amount,
            swept_to_treasury=p.sweep,
        )


class PositionResponse(BaseModel):
    market_id: str
    address: str
    bets_yes: int
    bets_no: int
    claimed: bool

    @classmethod
    def from_domain(cls, market_id: str, p: Position) -> "PositionResponse":
        return cls(
            market_id=market_id,
            address=p.address,
            bets_yes=p.bets_yes,
            bets_no=p.bets_no,
            claimed=p.claimed,
        )


class EventItem(BaseModel):
    event_type: str
    payload: dict[str, object]
    created_at: str | None

    @classmethod
    def from_domain(cls, ev: MarketEvent) -> "EventItem":
        created: datetime | None = ev.created_at
        return cls(
            event_type=ev.event_type,
            payload=ev.payload,
            created_at=created.isoformat() if created else None,
        )


class EventListResponse(BaseModel):
    market_id: str
    items: list[EventItem]
