"""Integration-test fixtures.

Requires a migrated Postgres at DATABASE_URL (alembic upgrade head) and the
sql collateral backend. Run with: pytest -m integration

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool (created at import time) remains valid across
the entire test session.
"""

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text

from src.main import app
from src.pm_common.database import async_session_factory
from src.pm_market.application.service import MarketApplicationService, get_market_service
from tests.support import RecordingOracle

_SEED_BALANCE_SQL = text("""
    INSERT INTO collateral_accounts (asset, holder, balance)
    VALUES (:asset, :holder, :amount)
    ON CONFLICT (asset, holder) DO UPDATE SET balance = EXCLUDED.balance
""")


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client with the oracle replaced by a recorder."""
    service = MarketApplicationService(oracle=RecordingOracle())
    app.dependency_overrides[get_market_service] = lambda: service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def seed_balance():
    async def _seed(asset: str, holder: str, amount: int) -> None:
        async with async_session_factory() as db:
            await db.execute(_SEED_BALANCE_SQL, {"asset": asset, "holder": holder, "amount": amount})
            await db.commit()

    return _seed
