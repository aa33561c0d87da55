"""Shared test fixtures."""

import os

# Settings() requires JWT_SECRET; set it before anything imports config.settings.
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")

from collections.abc import Awaitable, Callable  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.main import app  # noqa: E402
from src.pm_clearing.infrastructure.collateral_memory import InMemoryCollateralAsset  # noqa: E402
from src.pm_clearing.infrastructure.ledger import CollateralLedger  # noqa: E402
from src.pm_settlement.engine.engine import SettlementEngine  # noqa: E402
from tests.support import (  # noqa: E402
    COLLATERAL,
    CUSTODY,
    FakeClock,
    RecordingOracle,
    make_market,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def asset() -> InMemoryCollateralAsset:
    return InMemoryCollateralAsset(COLLATERAL)


@pytest.fixture
def oracle(asset: InMemoryCollateralAsset) -> RecordingOracle:
    return RecordingOracle(asset)


@pytest.fixture
def fund(asset: InMemoryCollateralAsset) -> Callable[..., Awaitable[None]]:
    """Mint `amount` to `holder` and approve the market custody to pull it."""

    async def _fund(holder: str, amount: int, spender: str = CUSTODY) -> None:
        asset.mint(holder, amount)
        await asset.approve(holder, spender, amount)

    return _fund


@pytest.fixture
def make_engine(
    asset: InMemoryCollateralAsset, oracle: RecordingOracle, clock: FakeClock
) -> Callable[..., SettlementEngine]:
    def _make(**market_kwargs: Any) -> SettlementEngine:
        state = make_market(**market_kwargs)
        ledger = CollateralLedger(state.market_id, state.custody, asset)
        return SettlementEngine(state, ledger, oracle, clock=clock)

    return _make


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
