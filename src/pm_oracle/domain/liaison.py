"""OracleLiaison — issues price requests and vets inbound callbacks.

The request in flight is always (price_identifier, request_timestamp,
custom_ancillary_data) on the MarketState; request_timestamp doubles as the
round counter and moves forward on every accepted dispute.

Callback asymmetry: a settle callback for a superseded round is a silent
no-op, every other mismatch is rejected.
"""

import logging

from src.pm_clearing.domain.payout import outcome_of
from src.pm_clearing.infrastructure.ledger import CollateralLedger
from src.pm_common.errors import (
    OracleRequestMismatchError,
    SettlementAlreadyReceivedError,
    UnauthorizedOracleError,
)
from src.pm_common.fixed_point import HALF_SCALE, SCALE
from src.pm_market.domain.models import MarketState
from src.pm_oracle.domain.models import PriceRequest
from src.pm_oracle.domain.ports import PriceOracle

logger = logging.getLogger(__name__)


def normalize_price(price: int) -> int:
    """Map a raw oracle answer onto {0, SCALE/2, SCALE}."""
    if price >= SCALE:
        return SCALE
    if price == HALF_SCALE:
        return HALF_SCALE
    return 0


class OracleLiaison:
    def __init__(self, oracle: PriceOracle, ledger: CollateralLedger) -> None:
        self.oracle = oracle
        self.ledger = ledger

    def current_request(self, state: MarketState) -> PriceRequest:
        return PriceRequest(
            requester=state.custody,
            identifier=state.price_identifier,
            timestamp=state.request_timestamp,
            ancillary_data=state.custom_ancillary_data,
            currency=state.collateral,
            reward=state.proposer_reward,
            bond=state.proposer_bond,
            liveness=state.liveness,
        )

    async def submit(self, state: MarketState, timestamp: int) -> PriceRequest:
        """Open a new oracle round at `timestamp` and configure it.

        State is updated first; the oracle calls follow.
        """
        state.request_timestamp = timestamp
        state.price_requested = True
        state.posted_reward = state.proposer_reward
        req = self.current_request(state)

        await self.ledger.fund_oracle_request(
            state.oracle, req.reward, reference=str(req.timestamp)
        )
        await self.oracle.request_price(
            req.requester, req.identifier, req.timestamp, req.ancillary_data,
            req.currency, req.reward,
        )
        await self.oracle.set_custom_liveness(
            req.requester, req.identifier, req.timestamp, req.ancillary_data, req.liveness
        )
        if req.bond > 0:
            await self.oracle.set_bond(
                req.requester, req.identifier, req.timestamp, req.ancillary_data, req.bond
            )
        await self.oracle.set_event_based(
            req.requester, req.identifier, req.timestamp, req.ancillary_data
        )
        await self.oracle.set_callbacks(
            req.requester,
            req.identifier,
            req.timestamp,
            req.ancillary_data,
            wants_dispute_callback=True,
            wants_settle_callback=True,
            wants_propose_callback=False,
        )
        logger.info(
            "Price requested: market=%s round=%d reward=%d bond=%d liveness=%d",
            state.market_id, req.timestamp, req.reward, req.bond, req.liveness,
        )
        return req

    def accept_settlement(
        self,
        state: MarketState,
        sender: str,
        identifier: bytes,
        timestamp: int,
        ancillary_data: bytes,
    ) -> bool:
        """Vet a settle callback. False means stale round: ignore it."""
        self._check_sender(state, sender)
        if identifier != state.price_identifier:
            raise OracleRequestMismatchError("identifier")
        if ancillary_data != state.custom_ancillary_data:
            raise OracleRequestMismatchError("ancillary_data")
        if timestamp != state.request_timestamp:
            logger.info(
                "Stale settlement ignored: market=%s round=%d current=%d",
                state.market_id, timestamp, state.request_timestamp,
            )
            return False
        if state.received_settlement_price:
            raise SettlementAlreadyReceivedError(state.market_id)
        return True

    def record_settlement(self, state: MarketState, price: int) -> int:
        state.settlement_price = normalize_price(price)
        state.received_settlement_price = True
        logger.info(
            "Price settled: market=%s round=%d raw=%d outcome=%s",
            state.market_id, state.request_timestamp, price,
            outcome_of(state.settlement_price).value,
        )
        return state.settlement_price

    def accept_dispute(
        self,
        state: MarketState,
        sender: str,
        identifier: bytes,
        timestamp: int,
        ancillary_data: bytes,
        refund: int,
    ) -> None:
        self._check_sender(state, sender)
        if identifier != state.price_identifier:
            raise OracleRequestMismatchError("identifier")
        if timestamp != state.request_timestamp:
            raise OracleRequestMismatchError("timestamp")
        if ancillary_data != state.custom_ancillary_data:
            raise OracleRequestMismatchError("ancillary_data")
        if refund != state.posted_reward:
            raise OracleRequestMismatchError("refund")
        if state.received_settlement_price:
            raise SettlementAlreadyReceivedError(state.market_id)

    @staticmethod
    def next_round(state: MarketState, now: int) -> int:
        """Round ids strictly increase even if two disputes land in one second."""
        return max(now, state.request_timestamp + 1)

    def _check_sender(self, state: MarketState, sender: str) -> None:
        if sender != state.oracle:
            raise UnauthorizedOracleError(sender)
