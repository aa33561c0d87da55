# src/pm_market/domain/repository.py
"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_market.domain.models import LedgerEntry, MarketEvent, MarketState, Position


class MarketRepositoryProtocol(Protocol):
    async def get_market(self, db: AsyncSession, market_id: str) -> MarketState | None: ...

    async def insert_market(self, db: AsyncSession, state: MarketState) -> None: ...

    async def save_market(self, db: AsyncSession, state: MarketState) -> None: ...

    async def save_positions(
        self, db: AsyncSession, market_id: str, positions: list[Position]
    ) -> None: ...

    async def append_ledger_entries(
        self, db: AsyncSession, entries: list[LedgerEntry]
    ) -> None: ...

    async def append_events(self, db: AsyncSession, events: list[MarketEvent]) -> None: ...

    async def list_events(
        self, db: AsyncSession, market_id: str, limit: int
    ) -> list[MarketEvent]: ...
