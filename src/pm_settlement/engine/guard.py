"""Entry-point guard for SettlementEngine.

Two jobs, both around every state-mutating entry point:
  * reject re-entry while another entry point is running (a collateral or
    oracle callee calling back into the engine mid-operation);
  * make the operation all-or-nothing: on any exception the aggregate is
    restored to its pre-call snapshot, the call's journal is discarded and
    in-memory collateral moves are rewound. SQL collateral is undone by the
    enclosing transaction's rollback.
"""

import functools
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from src.pm_clearing.infrastructure.collateral_memory import journal_scope
from src.pm_common.errors import ReentrantCallError

T = TypeVar("T")


def nonreentrant(
    entry_point: str,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(fn)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> T:
            if self._entered is not None:
                raise ReentrantCallError(entry_point)
            self._entered = entry_point
            snapshot = self.state.snapshot()
            ledger_mark = self.ledger.mark()
            events_mark = len(self._events)
            try:
                with journal_scope() as transfers:
                    transfers_mark = transfers.mark()
                    try:
                        return await fn(self, *args, **kwargs)
                    except BaseException:
                        transfers.rewind(transfers_mark)
                        self.state.restore(snapshot)
                        self.ledger.rewind(ledger_mark)
                        del self._events[events_mark:]
                        raise
            finally:
                self._entered = None

        return wrapper

    return decorator
