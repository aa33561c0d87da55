"""SettlementEngine — lifecycle state machine for one market.

    CREATED --initialize--> BETTING_OPEN --(clock passes window end)-->
    AWAITING_SETTLEMENT --on_disputed--> AWAITING_SETTLEMENT (new round)
                        --on_settled--> SETTLED --claim_winnings--> per-user claimed

Every mutating entry point is wrapped by `nonreentrant`: state effects are
applied before any collateral or oracle call, and a failure anywhere rolls
the aggregate back to where it was.
"""

import logging
from collections.abc import Callable
from typing import Any

from src.pm_clearing.domain.collateral import CollateralAsset
from src.pm_clearing.domain.payout import Payout
from src.pm_clearing.domain.settlement import settle_claim
from src.pm_clearing.domain.stakes import StakeReceipt, record_stake
from src.pm_clearing.infrastructure.ledger import CollateralLedger
from src.pm_common.datetime_utils import unix_now
from src.pm_common.enums import BetSide, LedgerEntryType, MarketEventType, MarketPhase
from src.pm_common.errors import (
    InvalidDurationError,
    InvalidTreasuryError,
    MarketAlreadyInitializedError,
    NotMarketOwnerError,
)
from src.pm_common.fixed_point import validate_fee_bps
from src.pm_market.domain.models import MarketEvent, MarketState
from src.pm_oracle.domain.liaison import OracleLiaison
from src.pm_oracle.domain.models import PriceRequest
from src.pm_oracle.domain.ports import PriceOracle
from src.pm_settlement.engine.guard import nonreentrant

logger = logging.getLogger(__name__)


class SettlementEngine:
    def __init__(
        self,
        state: MarketState,
        ledger: CollateralLedger,
        oracle: PriceOracle,
        clock: Callable[[], int] = unix_now,
        dispute_warn_threshold: int = 3,
    ) -> None:
        self.state = state
        self.ledger = ledger
        self.liaison = OracleLiaison(oracle, ledger)
        self._clock = clock
        self._dispute_warn_threshold = dispute_warn_threshold
        self._events: list[MarketEvent] = []
        self._entered: str | None = None

    def phase(self) -> MarketPhase:
        return self.state.phase(self._clock())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @nonreentrant("initialize")
    async def initialize(self, caller: str, betting_duration: int) -> PriceRequest:
        """Fund the oracle incentive, open betting, and ask the first question."""
        state = self.state
        if state.market_initialized:
            raise MarketAlreadyInitializedError(state.market_id)
        self._require_owner(caller)
        if betting_duration <= 0:
            raise InvalidDurationError(betting_duration)
        if not state.treasury:
            raise InvalidTreasuryError()

        now = self._clock()
        state.market_initialized = True
        state.betting_window_end = now + betting_duration

        await self.ledger.collect_proposer_reward(caller, state.proposer_reward)
        request = await self.liaison.submit(state, now)

        self._emit(
            MarketEventType.MARKET_INITIALIZED,
            operator=caller,
            betting_window_end=state.betting_window_end,
        )
        self._emit_request(request)
        logger.info(
            "Market initialized: market=%s window_end=%d",
            state.market_id, state.betting_window_end,
        )
        return request

    @nonreentrant("place_bet")
    async def place_bet(self, caller: str, side: BetSide, amount: int) -> StakeReceipt:
        receipt = record_stake(self.state, caller, side, amount, self._clock())
        await self.ledger.collect_stake(
            caller, receipt.net, receipt.fee, self.state.treasury, reference=side.value
        )
        self._emit(
            MarketEventType.BET_PLACED,
            address=caller,
            side=side.value,
            amount=amount,
            net=receipt.net,
            fee=receipt.fee,
        )
        return receipt

    @nonreentrant("on_settled")
    async def on_settled(
        self,
        sender: str,
        identifier: bytes,
        timestamp: int,
        ancillary_data: bytes,
        price: int,
    ) -> bool:
        """Oracle settle callback. Returns False for a superseded round (no-op)."""
        if not self.liaison.accept_settlement(
            self.state, sender, identifier, timestamp, ancillary_data
        ):
            self._emit(
                MarketEventType.STALE_SETTLEMENT_IGNORED,
                round=timestamp,
                current_round=self.state.request_timestamp,
            )
            return False
        settlement_price = self.liaison.record_settlement(self.state, price)
        self._emit(
            MarketEventType.PRICE_SETTLED,
            round=timestamp,
            price=str(price),
            settlement_price=str(settlement_price),
        )
        return True

    @nonreentrant("on_disputed")
    async def on_disputed(
        self,
        sender: str,
        identifier: bytes,
        timestamp: int,
        ancillary_data: bytes,
        refund: int,
    ) -> PriceRequest:
        """Oracle dispute callback: open the next round and ask again."""
        state = self.state
        self.liaison.accept_dispute(state, sender, identifier, timestamp, ancillary_data, refund)
        state.dispute_count += 1
        new_round = self.liaison.next_round(state, self._clock())
        self._emit(
            MarketEventType.PRICE_DISPUTED,
            round=timestamp,
            next_round=new_round,
            refund=refund,
            dispute_count=state.dispute_count,
        )
        request = await self.liaison.submit(state, new_round)
        self._emit_request(request)
        if state.dispute_count >= self._dispute_warn_threshold:
            logger.warning(
                "Market %s disputed %d times; still re-requesting (round=%d)",
                state.market_id, state.dispute_count, new_round,
            )
        return request

    @nonreentrant("claim_winnings")
    async def claim_winnings(self, caller: str) -> Payout:
        """Pay the caller's share once. State is final before collateral moves."""
        state = self.state
        payout = settle_claim(state, caller)

        if payout.sweep > 0 and payout.swept_side is not None:
            await self.ledger.pay_out(
                state.treasury, payout.sweep, LedgerEntryType.TREASURY_SWEEP
            )
            self._emit(
                MarketEventType.POOL_SWEPT,
                side=payout.swept_side.value,
                amount=payout.sweep,
                treasury=state.treasury,
            )
        await self.ledger.pay_out(caller, payout.amount)
        self._emit(
            MarketEventType.WINNINGS_CLAIMED,
            address=caller,
            outcome=payout.outcome.value,
            amount=payout.amount,
        )
        logger.info(
            "Claim: market=%s address=%s outcome=%s payout=%d",
            state.market_id, caller, payout.outcome.value, payout.amount,
        )
        return payout

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    @nonreentrant("set_fee_bps")
    async def set_fee_bps(self, caller: str, fee_bps: int) -> None:
        self._require_owner(caller)
        validate_fee_bps(fee_bps)
        old = self.state.fee_bps
        self.state.fee_bps = fee_bps
        self._emit(MarketEventType.FEE_UPDATED, old=old, new=fee_bps)

    @nonreentrant("set_treasury")
    async def set_treasury(self, caller: str, treasury: str) -> None:
        self._require_owner(caller)
        if not treasury:
            raise InvalidTreasuryError()
        old = self.state.treasury
        self.state.treasury = treasury
        self._emit(MarketEventType.TREASURY_UPDATED, old=old, new=treasury)

    @nonreentrant("pause")
    async def pause(self, caller: str) -> None:
        self._require_owner(caller)
        self.state.paused = True
        self._emit(MarketEventType.MARKET_PAUSED, by=caller)

    @nonreentrant("unpause")
    async def unpause(self, caller: str) -> None:
        self._require_owner(caller)
        self.state.paused = False
        self._emit(MarketEventType.MARKET_UNPAUSED, by=caller)

    @nonreentrant("set_oracle_params")
    async def set_oracle_params(
        self,
        caller: str,
        proposer_reward: int | None = None,
        liveness: int | None = None,
        proposer_bond: int | None = None,
    ) -> None:
        """Tune the incentive for future rounds; an open round keeps its terms."""
        self._require_owner(caller)
        state = self.state
        if proposer_reward is not None:
            state.proposer_reward = proposer_reward
        if liveness is not None:
            state.liveness = liveness
        if proposer_bond is not None:
            state.proposer_bond = proposer_bond
        self._emit(
            MarketEventType.ORACLE_PARAMS_UPDATED,
            proposer_reward=state.proposer_reward,
            liveness=state.liveness,
            proposer_bond=state.proposer_bond,
        )

    @nonreentrant("rescue_tokens")
    async def rescue_tokens(
        self, caller: str, asset: CollateralAsset, recipient: str, amount: int
    ) -> None:
        self._require_owner(caller)
        await self.ledger.rescue(asset, recipient, amount)
        self._emit(
            MarketEventType.TOKEN_RESCUED,
            asset=asset.address,
            recipient=recipient,
            amount=amount,
        )

    # ------------------------------------------------------------------
    # Journal
    # ------------------------------------------------------------------

    def drain_events(self) -> list[MarketEvent]:
        events, self._events = self._events, []
        return events

    def _emit(self, event_type: MarketEventType, **payload: Any) -> None:
        self._events.append(
            MarketEvent(
                market_id=self.state.market_id,
                event_type=event_type.value,
                payload=payload,
            )
        )

    def _emit_request(self, request: PriceRequest) -> None:
        self._emit(
            MarketEventType.PRICE_REQUESTED,
            round=request.timestamp,
            identifier=request.identifier.decode(errors="replace"),
            reward=request.reward,
            bond=request.bond,
            liveness=request.liveness,
        )

    def _require_owner(self, caller: str) -> None:
        if caller != self.state.owner:
            raise NotMarketOwnerError(caller)
