"""Process-local collateral asset.

Used for COLLATERAL_BACKEND=memory and throughout the unit tests.
Balances vanish on restart.

There is no database transaction to undo a failed operation's transfers, so
every balance or allowance change made inside a `journal_scope()` is logged
as a delta and can be rewound to a mark. The journal is bound per asyncio
task, and deltas are reversed rather than old values restored, so rewinding
one request never clobbers what a concurrent request moved in the meantime.
"""

import logging
from collections import defaultdict
from collections.abc import Hashable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from src.pm_common.errors import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidTransferError,
)

logger = logging.getLogger(__name__)


class MemoryJournal:
    def __init__(self) -> None:
        self._deltas: list[tuple[dict[Any, int], Hashable, int]] = []

    def record(self, table: dict[Any, int], key: Hashable, delta: int) -> None:
        self._deltas.append((table, key, delta))

    def mark(self) -> int:
        return len(self._deltas)

    def rewind(self, mark: int) -> None:
        while len(self._deltas) > mark:
            table, key, delta = self._deltas.pop()
            table[key] -= delta
        logger.debug("memory journal rewound to %d", mark)


_current_journal: ContextVar[MemoryJournal | None] = ContextVar(
    "pm_memory_journal", default=None
)


@contextmanager
def journal_scope() -> Iterator[MemoryJournal]:
    """Bind a journal for this task, or join the one already bound."""
    journal = _current_journal.get()
    if journal is not None:
        yield journal
        return
    journal = MemoryJournal()
    token = _current_journal.set(journal)
    try:
        yield journal
    finally:
        _current_journal.reset(token)


class InMemoryCollateralAsset:
    def __init__(self, address: str) -> None:
        self._address = address
        self._balances: dict[str, int] = defaultdict(int)
        self._allowances: dict[tuple[str, str], int] = defaultdict(int)

    @property
    def address(self) -> str:
        return self._address

    def mint(self, holder: str, amount: int) -> None:
        """Credit `holder` out of thin air (faucet for local runs and tests)."""
        _check_amount(amount)
        self._adjust(self._balances, holder, amount)

    async def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    async def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    async def transfer(self, sender: str, recipient: str, amount: int) -> None:
        _check_amount(amount)
        self._move(sender, recipient, amount)

    async def transfer_from(
        self, spender: str, owner: str, recipient: str, amount: int
    ) -> None:
        _check_amount(amount)
        allowed = self._allowances.get((owner, spender), 0)
        if allowed < amount:
            raise InsufficientAllowanceError(owner, spender, amount, allowed)
        # Balance is checked before the allowance is spent so a failure moves nothing.
        available = self._balances.get(owner, 0)
        if available < amount:
            raise InsufficientBalanceError(owner, amount, available)
        self._adjust(self._allowances, (owner, spender), -amount)
        self._move(owner, recipient, amount)

    async def approve(self, owner: str, spender: str, amount: int) -> None:
        _check_amount(amount)
        key = (owner, spender)
        self._adjust(self._allowances, key, amount - self._allowances.get(key, 0))

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        available = self._balances.get(sender, 0)
        if available < amount:
            raise InsufficientBalanceError(sender, amount, available)
        self._adjust(self._balances, sender, -amount)
        self._adjust(self._balances, recipient, amount)
        logger.debug("%s: %s -> %s amount=%d", self._address, sender, recipient, amount)

    @staticmethod
    def _adjust(table: dict[Any, int], key: Hashable, delta: int) -> None:
        if delta == 0:
            return
        table[key] += delta
        journal = _current_journal.get()
        if journal is not None:
            journal.record(table, key, delta)


def _check_amount(amount: int) -> None:
    if amount < 0:
        raise InvalidTransferError(f"negative amount {amount}")
