"""Unit tests for InMemoryCollateralAsset."""
import pytest

from src.pm_clearing.infrastructure.collateral_memory import (
    InMemoryCollateralAsset,
    journal_scope,
)
from src.pm_common.errors import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidTransferError,
)


@pytest.fixture
def token() -> InMemoryCollateralAsset:
    t = InMemoryCollateralAsset("USDC")
    t.mint("alice", 100)
    return t


class TestTransfer:
    async def test_moves_balance(self, token):
        await token.transfer("alice", "bob", 40)
        assert await token.balance_of("alice") == 60
        assert await token.balance_of("bob") == 40

    async def test_insufficient_balance_moves_nothing(self, token):
        with pytest.raises(InsufficientBalanceError):
            await token.transfer("alice", "bob", 101)
        assert await token.balance_of("alice") == 100
        assert await token.balance_of("bob") == 0

    async def test_negative_amount_rejected(self, token):
        with pytest.raises(InvalidTransferError):
            await token.transfer("alice", "bob", -1)


class TestTransferFrom:
    async def test_spends_allowance(self, token):
        await token.approve("alice", "market", 70)
        await token.transfer_from("market", "alice", "market", 50)
        assert await token.allowance("alice", "market") == 20
        assert await token.balance_of("market") == 50

    async def test_insufficient_allowance(self, token):
        await token.approve("alice", "market", 10)
        with pytest.raises(InsufficientAllowanceError):
            await token.transfer_from("market", "alice", "market", 11)

    async def test_balance_failure_keeps_allowance(self, token):
        await token.approve("alice", "market", 500)
        with pytest.raises(InsufficientBalanceError):
            await token.transfer_from("market", "alice", "market", 200)
        assert await token.allowance("alice", "market") == 500

    async def test_approve_overwrites(self, token):
        await token.approve("alice", "market", 10)
        await token.approve("alice", "market", 3)
        assert await token.allowance("alice", "market") == 3


class TestJournal:
    async def test_rewind_reverses_moves_and_allowances(self, token):
        await token.approve("alice", "market", 50)
        with journal_scope() as journal:
            mark = journal.mark()
            await token.transfer_from("market", "alice", "market", 30)
            await token.approve("market", "oracle", 7)
            journal.rewind(mark)
        assert await token.balance_of("alice") == 100
        assert await token.balance_of("market") == 0
        assert await token.allowance("alice", "market") == 50
        assert await token.allowance("market", "oracle") == 0

    async def test_rewind_keeps_moves_before_mark(self, token):
        with journal_scope() as journal:
            await token.transfer("alice", "bob", 10)
            mark = journal.mark()
            await token.transfer("alice", "bob", 20)
            journal.rewind(mark)
        assert await token.balance_of("bob") == 10

    async def test_nested_scope_joins_outer(self, token):
        with journal_scope() as outer:
            mark = outer.mark()
            with journal_scope() as inner:
                assert inner is outer
                await token.transfer("alice", "bob", 5)
            outer.rewind(mark)
        assert await token.balance_of("alice") == 100

    async def test_scope_ends_with_outermost(self, token):
        with journal_scope() as first:
            await token.transfer("alice", "bob", 5)
        with journal_scope() as second:
            assert second is not first
            assert second.mark() == 0
