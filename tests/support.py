"""Test doubles and builders shared across the unit tests."""

from typing import Any

from src.pm_clearing.infrastructure.collateral_memory import InMemoryCollateralAsset
from src.pm_common.errors import OracleUnavailableError
from src.pm_gateway.auth.jwt_handler import create_access_token
from src.pm_market.domain.models import MarketState
from src.pm_oracle.domain.models import DEFAULT_PRICE_IDENTIFIER, default_ancillary_data

OWNER = "owner"
TREASURY = "treasury"
ORACLE = "oracle"
ALICE = "alice"
BOB = "bob"
CAROL = "carol"
MARKET_ID = "mkt_test"
CUSTODY = f"market:{MARKET_ID}"
COLLATERAL = "USDC"
T0 = 1_700_000_000
ANCILLARY = default_ancillary_data("ETH/USD")
IDENTIFIER = DEFAULT_PRICE_IDENTIFIER


class FakeClock:
    """Callable unix clock the tests move by hand."""

    def __init__(self, now: int = T0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


class RecordingOracle:
    """PriceOracle double: records every call and pulls the reward it was approved for."""

    def __init__(self, asset: InMemoryCollateralAsset | None = None, address: str = ORACLE):
        self._address = address
        self.asset = asset
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.fail_on: str | None = None

    @property
    def address(self) -> str:
        return self._address

    def _record(self, name: str, *args: Any) -> None:
        if self.fail_on == name:
            raise OracleUnavailableError(name)
        self.calls.append((name, args))

    def requests(self) -> list[tuple[Any, ...]]:
        return [args for name, args in self.calls if name == "request_price"]

    async def request_price(self, requester, identifier, timestamp, ancillary_data, currency, reward):
        self._record("request_price", requester, identifier, timestamp, ancillary_data, currency, reward)
        if self.asset is not None and reward > 0:
            await self.asset.transfer_from(self._address, requester, self._address, reward)

    async def set_custom_liveness(self, requester, identifier, timestamp, ancillary_data, liveness):
        self._record("set_custom_liveness", requester, timestamp, liveness)

    async def set_bond(self, requester, identifier, timestamp, ancillary_data, bond):
        self._record("set_bond", requester, timestamp, bond)

    async def set_event_based(self, requester, identifier, timestamp, ancillary_data):
        self._record("set_event_based", requester, timestamp)

    async def set_callbacks(
        self,
        requester,
        identifier,
        timestamp,
        ancillary_data,
        wants_dispute_callback,
        wants_settle_callback,
        wants_propose_callback,
    ):
        self._record(
            "set_callbacks",
            requester,
            timestamp,
            wants_dispute_callback,
            wants_settle_callback,
            wants_propose_callback,
        )


def make_market(**kwargs: Any) -> MarketState:
    defaults: dict[str, Any] = dict(
        market_id=MARKET_ID,
        pair_name="ETH/USD",
        owner=OWNER,
        treasury=TREASURY,
        fee_bps=0,
        collateral=COLLATERAL,
        custody=CUSTODY,
        oracle=ORACLE,
        price_identifier=IDENTIFIER,
        custom_ancillary_data=ANCILLARY,
    )
    defaults.update(kwargs)
    return MarketState(**defaults)




def bearer(address: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(address)}"}
