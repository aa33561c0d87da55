# src/pm_oracle/domain/ports.py
"""PriceOracle Protocol — outbound calls the market makes on the oracle.

The oracle answers asynchronously through the two inbound callbacks
(on_settled / on_disputed), never through these return values.
A request is keyed by (requester, identifier, timestamp, ancillary_data).
"""

from typing import Protocol


class PriceOracle(Protocol):
    @property
    def address(self) -> str: ...

    async def request_price(
        self,
        requester: str,
        identifier: bytes,
        timestamp: int,
        ancillary_data: bytes,
        currency: str,
        reward: int,
    ) -> None: ...

    async def set_custom_liveness(
        self,
        requester: str,
        identifier: bytes,
        timestamp: int,
        ancillary_data: bytes,
        liveness: int,
    ) -> None: ...

    async def set_bond(
        self,
        requester: str,
        identifier: bytes,
        timestamp: int,
        ancillary_data: bytes,
        bond: int,
    ) -> None: ...

    async def set_event_based(
        self,
        requester: str,
        identifier: bytes,
        timestamp: int,
        ancillary_data: bytes,
    ) -> None: ...

    async def set_callbacks(
        self,
        requester: str,
        identifier: bytes,
        timestamp: int,
        ancillary_data: bytes,
        wants_dispute_callback: bool,
        wants_settle_callback: bool,
        wants_propose_callback: bool,
    ) -> None: ...
