"""CollateralLedger — every value movement in or out of a market's custody.

Each movement is a single all-or-nothing call on the collateral asset and is
journaled as a LedgerEntry. The journal is drained by the application
service and persisted in the same transaction as the market row.
"""

import logging

from src.pm_clearing.domain.collateral import CollateralAsset
from src.pm_common.enums import LedgerEntryType
from src.pm_common.errors import CollateralRescueForbiddenError
from src.pm_market.domain.models import LedgerEntry

logger = logging.getLogger(__name__)


class CollateralLedger:
    def __init__(self, market_id: str, custody: str, asset: CollateralAsset) -> None:
        self.market_id = market_id
        self.custody = custody
        self.asset = asset
        self._entries: list[LedgerEntry] = []

    # ------------------------------------------------------------------
    # Pulls: caller's external balance -> custody / treasury
    # ------------------------------------------------------------------

    async def collect_stake(
        self, bettor: str, net: int, fee: int, treasury: str, reference: str
    ) -> None:
        """Pull the whole stake into custody in one call, then forward the fee.

        The forward cannot fail: custody has just received at least `fee`.
        """
        amount = net + fee
        if amount <= 0:
            return
        await self.asset.transfer_from(self.custody, bettor, self.custody, amount)
        if net > 0:
            self._record(LedgerEntryType.BET_STAKE, bettor, self.custody, net, reference)
        if fee > 0:
            await self.asset.transfer(self.custody, treasury, fee)
            self._record(LedgerEntryType.BET_FEE, self.custody, treasury, fee, reference)

    async def collect_proposer_reward(self, operator: str, reward: int) -> None:
        if reward <= 0:
            return
        await self.asset.transfer_from(self.custody, operator, self.custody, reward)
        self._record(LedgerEntryType.PROPOSER_REWARD_IN, operator, self.custody, reward)

    async def fund_oracle_request(self, oracle: str, reward: int, reference: str) -> None:
        """Allow the oracle to pull the proposer reward when it accepts the request."""
        await self.asset.approve(self.custody, oracle, reward)
        if reward > 0:
            self._record(LedgerEntryType.ORACLE_REWARD_OUT, self.custody, oracle, reward, reference)

    # ------------------------------------------------------------------
    # Pushes: custody -> recipient
    # ------------------------------------------------------------------

    async def pay_out(
        self,
        recipient: str,
        amount: int,
        entry_type: LedgerEntryType = LedgerEntryType.SETTLEMENT_PAYOUT,
    ) -> None:
        if amount <= 0:
            return
        await self.asset.transfer(self.custody, recipient, amount)
        self._record(entry_type, self.custody, recipient, amount)

    async def rescue(self, asset: CollateralAsset, recipient: str, amount: int) -> None:
        """Return a non-collateral asset that was sent to the market by mistake."""
        if asset.address == self.asset.address:
            raise CollateralRescueForbiddenError()
        await asset.transfer(self.custody, recipient, amount)
        self._entries.append(
            LedgerEntry(
                market_id=self.market_id,
                entry_type=LedgerEntryType.TOKEN_RESCUE.value,
                from_address=self.custody,
                to_address=recipient,
                amount=amount,
                asset=asset.address,
            )
        )

    async def custody_balance(self) -> int:
        return await self.asset.balance_of(self.custody)

    # ------------------------------------------------------------------
    # Journal
    # ------------------------------------------------------------------

    def mark(self) -> int:
        return len(self._entries)

    def rewind(self, mark: int) -> None:
        del self._entries[mark:]

    def drain(self) -> list[LedgerEntry]:
        entries, self._entries = self._entries, []
        return entries

    def _record(
        self,
        entry_type: LedgerEntryType,
        from_address: str,
        to_address: str,
        amount: int,
        reference: str | None = None,
    ) -> None:
        self._entries.append(
            LedgerEntry(
                market_id=self.market_id,
                entry_type=entry_type.value,
                from_address=from_address,
                to_address=to_address,
                amount=amount,
                asset=self.asset.address,
                reference=reference,
            )
        )
        logger.debug(
            "ledger %s %s: %s -> %s %d",
            self.market_id, entry_type.value, from_address, to_address, amount,
        )
