"""HttpOptimisticOracle — PriceOracle over the oracle service's HTTP API.

Bytes travel as 0x-prefixed hex. The service answers later by calling the
market's callback endpoints (see pm_oracle.api.router); nothing here waits
for a price. Calls are not retried: a failed request fails the enclosing
market operation, which the caller may simply repeat.
"""

import logging
from typing import Any

import httpx

from config.settings import settings
from src.pm_common.encoding import to_hex
from src.pm_common.errors import OracleUnavailableError

logger = logging.getLogger(__name__)


class HttpOptimisticOracle:
    def __init__(
        self,
        base_url: str | None = None,
        address: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.ORACLE_URL).rstrip("/")
        self._address = address or settings.ORACLE_ADDRESS
        self._timeout = timeout if timeout is not None else settings.ORACLE_TIMEOUT_SECONDS
        self._transport = transport

    @property
    def address(self) -> str:
        return self._address

    async def request_price(
        self,
        requester: str,
        identifier: bytes,
        timestamp: int,
        ancillary_data: bytes,
        currency: str,
        reward: int,
    ) -> None:
        await self._post(
            "/v1/requests",
            {
                **_request_key(requester, identifier, timestamp, ancillary_data),
                "currency": currency,
                "reward": str(reward),
            },
        )

    async def set_custom_liveness(
        self,
        requester: str,
        identifier: bytes,
        timestamp: int,
        ancillary_data: bytes,
        liveness: int,
    ) -> None:
        await self._post(
            "/v1/requests/liveness",
            {**_request_key(requester, identifier, timestamp, ancillary_data), "liveness": liveness},
        )

    async def set_bond(
        self,
        requester: str,
        identifier: bytes,
        timestamp: int,
        ancillary_data: bytes,
        bond: int,
    ) -> None:
        await self._post(
            "/v1/requests/bond",
            {**_request_key(requester, identifier, timestamp, ancillary_data), "bond": str(bond)},
        )

    async def set_event_based(
        self,
        requester: str,
        identifier: bytes,
        timestamp: int,
        ancillary_data: bytes,
    ) -> None:
        await self._post(
            "/v1/requests/event-based",
            _request_key(requester, identifier, timestamp, ancillary_data),
        )

    async def set_callbacks(
        self,
        requester: str,
        identifier: bytes,
        timestamp: int,
        ancillary_data: bytes,
        wants_dispute_callback: bool,
        wants_settle_callback: bool,
        wants_propose_callback: bool,
    ) -> None:
        await self._post(
            "/v1/requests/callbacks",
            {
                **_request_key(requester, identifier, timestamp, ancillary_data),
                "dispute_callback": wants_dispute_callback,
                "settle_callback": wants_settle_callback,
                "propose_callback": wants_propose_callback,
            },
        )

    async def _post(self, path: str, payload: dict[str, Any]) -> None:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.post(url, json=payload)
                resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("Oracle rejected %s: %d %s", path, exc.response.status_code, exc.response.text)
            raise OracleUnavailableError(f"{path} -> {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.error("Oracle call failed %s: %s", path, exc)
            raise OracleUnavailableError(f"{path}: {exc}") from exc
        logger.debug("Oracle %s ok: %s", path, payload.get("timestamp"))


def _request_key(
    requester: str, identifier: bytes, timestamp: int, ancillary_data: bytes
) -> dict[str, Any]:
    return {
        "requester": requester,
        "identifier": to_hex(identifier),
        "timestamp": timestamp,
        "ancillary_data": to_hex(ancillary_data),
    }
