"""Unit tests for MarketApplicationService with a mocked repository."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.pm_common.enums import BetSide, MarketEventType, MarketPhase
from src.pm_common.errors import (
    InvalidFeeError,
    InvalidTreasuryError,
    MarketNotFoundError,
    NotMarketOwnerError,
)
from src.pm_market.application.schemas import CreateMarketRequest
from src.pm_market.application.service import MarketApplicationService, new_market_id
from tests.support import ALICE, CUSTODY, MARKET_ID, ORACLE, OWNER, TREASURY, make_market


def _repo(state=None) -> MagicMock:
    repo = MagicMock()
    repo.get_market = AsyncMock(return_value=state)
    repo.insert_market = AsyncMock()
    repo.save_market = AsyncMock()
    repo.save_positions = AsyncMock()
    repo.append_ledger_entries = AsyncMock()
    repo.append_events = AsyncMock()
    repo.list_events = AsyncMock(return_value=[])
    return repo


def _db() -> MagicMock:
    db = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


@pytest.fixture
def service_factory(oracle, asset, clock):
    def _make(repo) -> MarketApplicationService:
        return MarketApplicationService(
            repo=repo, oracle=oracle, asset_resolver=lambda _a: asset, clock=clock
        )

    return _make


class TestCreateMarket:
    def test_market_id_shape(self):
        mid = new_market_id()
        assert mid.startswith("mkt_") and len(mid) == 20

    async def test_persists_and_commits(self, service_factory):
        repo, db = _repo(), _db()
        service = service_factory(repo)
        req = CreateMarketRequest(pair_name="ETH/USD", treasury=TREASURY, fee_bps=100)

        detail = await service.create_market(db, OWNER, req)

        assert detail.id.startswith("mkt_")
        assert detail.custody == f"market:{detail.id}"
        assert detail.oracle == ORACLE
        assert detail.phase == MarketPhase.CREATED
        repo.insert_market.assert_awaited_once()
        [events] = repo.append_events.await_args.args[1:]
        assert events[0].event_type == MarketEventType.MARKET_CREATED.value
        db.commit.assert_awaited_once()

    async def test_rejects_fee_above_cap(self, service_factory):
        repo = _repo()
        req = CreateMarketRequest(pair_name="X", treasury=TREASURY, fee_bps=10_001)
        with pytest.raises(InvalidFeeError):
            await service_factory(repo).create_market(_db(), OWNER, req)
        repo.insert_market.assert_not_awaited()

    async def test_rejects_empty_treasury(self, service_factory):
        req = CreateMarketRequest(pair_name="X", treasury="")
        with pytest.raises(InvalidTreasuryError):
            await service_factory(_repo()).create_market(_db(), OWNER, req)

    async def test_insert_failure_rolls_back(self, service_factory):
        repo, db = _repo(), _db()
        repo.insert_market.side_effect = RuntimeError("db down")
        req = CreateMarketRequest(pair_name="X", treasury=TREASURY)
        with pytest.raises(RuntimeError):
            await service_factory(repo).create_market(db, OWNER, req)
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()


class TestExecute:
    async def test_initialize_flushes_state_and_events(self, service_factory):
        repo, db = _repo(make_market()), _db()
        service = service_factory(repo)

        detail = await service.initialize(db, MARKET_ID, OWNER, 3600)

        assert detail.market_initialized is True
        repo.save_market.assert_awaited_once()
        repo.append_events.assert_awaited_once()
        db.commit.assert_awaited_once()

    async def test_engine_is_cached_between_calls(self, service_factory, fund):
        repo, db = _repo(make_market()), _db()
        service = service_factory(repo)
        await service.initialize(db, MARKET_ID, OWNER, 3600)
        await fund(ALICE, 100)

        bet = await service.place_bet(db, MARKET_ID, ALICE, BetSide.YES, 100)

        assert bet.total_yes == 100
        assert repo.get_market.await_count == 1
        [positions] = repo.save_positions.await_args.args[2:]
        assert [p.address for p in positions] == [ALICE]
        repo.append_ledger_entries.assert_awaited()

    async def test_failure_rolls_back_and_evicts(self, service_factory):
        repo, db = _repo(make_market()), _db()
        service = service_factory(repo)

        with pytest.raises(NotMarketOwnerError):
            await service.initialize(db, MARKET_ID, ALICE, 3600)

        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()
        repo.save_market.assert_not_awaited()
        # the next call reloads from the repository
        await service.initialize(db, MARKET_ID, OWNER, 3600)
        assert repo.get_market.await_count == 2

    async def test_missing_market(self, service_factory):
        db = _db()
        with pytest.raises(MarketNotFoundError):
            await service_factory(_repo(None)).initialize(db, "mkt_nope", OWNER, 10)
        db.rollback.assert_awaited_once()

    async def test_failed_commit_rewinds_collateral(self, service_factory, fund, asset):
        repo, db = _repo(make_market()), _db()
        service = service_factory(repo)
        await service.initialize(db, MARKET_ID, OWNER, 3600)
        await fund(ALICE, 100)
        db.commit.side_effect = RuntimeError("commit failed")

        with pytest.raises(RuntimeError):
            await service.place_bet(db, MARKET_ID, ALICE, BetSide.YES, 100)

        assert await asset.balance_of(ALICE) == 100
        assert await asset.balance_of(CUSTODY) == 0
        assert await asset.allowance(ALICE, CUSTODY) == 100
        assert MARKET_ID not in service._engines

    async def test_missing_market_drops_lock(self, service_factory):
        service = service_factory(_repo(None))
        with pytest.raises(MarketNotFoundError):
            await service.place_bet(_db(), "mkt_nope", ALICE, BetSide.YES, 10)
        assert "mkt_nope" not in service._market_locks


class TestReads:
    async def test_get_market_not_found(self, service_factory):
        with pytest.raises(MarketNotFoundError):
            await service_factory(_repo(None)).get_market(_db(), "mkt_nope")

    async def test_unknown_position_is_empty(self, service_factory):
        service = service_factory(_repo(make_market()))
        pos = await service.get_position(_db(), MARKET_ID, "nobody")
        assert (pos.bets_yes, pos.bets_no, pos.claimed) == (0, 0, False)

    async def test_list_events_passes_limit(self, service_factory):
        repo = _repo(make_market())
        result = await service_factory(repo).list_events(_db(), MARKET_ID, 5)
        assert result.items == []
        repo.list_events.assert_awaited_once()
        assert repo.list_events.await_args.args[1:] == (MARKET_ID, 5)
