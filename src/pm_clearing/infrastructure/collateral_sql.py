"""SQL-backed collateral asset — balances and allowances in PostgreSQL.

Runs inside the caller's transaction (see pm_common.database.session_scope),
so a failed market operation rolls its transfers back with everything else.
Debits use the guarded UPDATE ... WHERE balance >= :amount RETURNING pattern;
a missing row means the debit did not happen.
"""

from sqlalchemy import text

from src.pm_common.database import current_session
from src.pm_common.errors import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidTransferError,
)

_BALANCE_SQL = text("""
    SELECT balance FROM collateral_accounts
    WHERE asset = :asset AND holder = :holder
""")

_DEBIT_SQL = text("""
    UPDATE collateral_accounts
    SET balance = balance - :amount, updated_at = NOW()
    WHERE asset = :asset AND holder = :holder AND balance >= :amount
    RETURNING balance
""")

_CREDIT_SQL = text("""
    INSERT INTO collateral_accounts (asset, holder, balance)
    VALUES (:asset, :holder, :amount)
    ON CONFLICT (asset, holder)
    DO UPDATE SET balance = collateral_accounts.balance + EXCLUDED.balance,
                  updated_at = NOW()
""")

_ALLOWANCE_SQL = text("""
    SELECT amount FROM collateral_allowances
    WHERE asset = :asset AND owner = :owner AND spender = :spender
""")

_SPEND_ALLOWANCE_SQL = text("""
    UPDATE collateral_allowances
    SET amount = amount - :amount, updated_at = NOW()
    WHERE asset = :asset AND owner = :owner AND spender = :spender
      AND amount >= :amount
    RETURNING amount
""")

_APPROVE_SQL = text("""
    INSERT INTO collateral_allowances (asset, owner, spender, amount)
    VALUES (:asset, :owner, :spender, :amount)
    ON CONFLICT (asset, owner, spender)
    DO UPDATE SET amount = EXCLUDED.amount, updated_at = NOW()
""")


class SqlCollateralAsset:
    def __init__(self, address: str) -> None:
        self._address = address

    @property
    def address(self) -> str:
        return self._address

    async def balance_of(self, holder: str) -> int:
        db = current_session()
        result = await db.execute(_BALANCE_SQL, {"asset": self._address, "holder": holder})
        balance = result.scalar_one_or_none()
        return int(balance) if balance is not None else 0

    async def allowance(self, owner: str, spender: str) -> int:
        db = current_session()
        result = await db.execute(
            _ALLOWANCE_SQL, {"asset": self._address, "owner": owner, "spender": spender}
        )
        amount = result.scalar_one_or_none()
        return int(amount) if amount is not None else 0

    async def transfer(self, sender: str, recipient: str, amount: int) -> None:
        _check_amount(amount)
        if amount == 0:
            return
        await self._debit(sender, amount)
        await self._credit(recipient, amount)

    async def transfer_from(
        self, spender: str, owner: str, recipient: str, amount: int
    ) -> None:
        _check_amount(amount)
        if amount == 0:
            return
        db = current_session()
        row = (
            await db.execute(
                _SPEND_ALLOWANCE_SQL,
                {"asset": self._address, "owner": owner, "spender": spender, "amount": amount},
            )
        ).fetchone()
        if row is None:
            allowed = await self.allowance(owner, spender)
            raise InsufficientAllowanceError(owner, spender, amount, allowed)
        await self._debit(owner, amount)
        await self._credit(recipient, amount)

    async def approve(self, owner: str, spender: str, amount: int) -> None:
        _check_amount(amount)
        db = current_session()
        await db.execute(
            _APPROVE_SQL,
            {"asset": self._address, "owner": owner, "spender": spender, "amount": amount},
        )

    async def _debit(self, holder: str, amount: int) -> None:
        db = current_session()
        row = (
            await db.execute(
                _DEBIT_SQL, {"asset": self._address, "holder": holder, "amount": amount}
            )
        ).fetchone()
        if row is None:
            available = await self.balance_of(holder)
            raise InsufficientBalanceError(holder, amount, available)

    async def _credit(self, holder: str, amount: int) -> None:
        db = current_session()
        await db.execute(
            _CREDIT_SQL, {"asset": self._address, "holder": holder, "amount": amount}
        )


def _check_amount(amount: int) -> None:
    if amount < 0:
        raise InvalidTransferError(f"negative amount {amount}")
