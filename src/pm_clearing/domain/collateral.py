"""CollateralAsset Protocol — the only contract the core assumes of the asset.

Every call moves value atomically or raises; a raised call has moved
nothing. Callers are explicit (`sender`, `spender`) because there is no
implicit message sender in-process.
"""

from typing import Protocol


class CollateralAsset(Protocol):
    @property
    def address(self) -> str: ...

    async def balance_of(self, holder: str) -> int: ...

    async def allowance(self, owner: str, spender: str) -> int: ...

    async def transfer(self, sender: str, recipient: str, amount: int) -> None: ...

    async def transfer_from(
        self, spender: str, owner: str, recipient: str, amount: int
    ) -> None: ...

    async def approve(self, owner: str, spender: str, amount: int) -> None: ...
