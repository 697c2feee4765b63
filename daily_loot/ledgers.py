"""Currency and item ledgers the claim engine pays rewards into.

Only the privileged mint side the engine needs is implemented here. Each
mint checks that the calling service credential was granted the game
authority on that ledger, the way the game contracts trusted the loot
engine through a role instead of ambient trust.
"""

import logging
from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from daily_loot.domain.claim_rules import is_null_account
from daily_loot.domain.rarity import MAX_STORED_VALUE
from daily_loot.exceptions import LedgerError, Unauthorized
from daily_loot.models.schemas import CurrencyBalance, ItemBalance, LedgerAuthority

GAME_AUTHORITY = "GAME_AUTHORITY"


@dataclass(frozen=True)
class ServiceCredential:
    name: str


class _AuthorizedLedger:
    ledger_name = ""

    async def grant_authority(self, credential_name: str, session: AsyncSession) -> None:
        """Allow the credential to mint on this ledger. Granting twice is a no-op."""
        if await self.has_authority(credential_name, session):
            return
        session.add(LedgerAuthority(ledger=self.ledger_name, credential_name=credential_name))
        await session.flush()
        logging.info(f"Granted {GAME_AUTHORITY} on {self.ledger_name} ledger to {credential_name}")

    async def has_authority(self, credential_name: str, session: AsyncSession) -> bool:
        stmt = select(LedgerAuthority).where(
            LedgerAuthority.ledger == self.ledger_name,
            LedgerAuthority.credential_name == credential_name,
        )
        result = await session.execute(stmt)
        return result.scalars().first() is not None

    async def _check_mint(self, credential: ServiceCredential, account: str, session: AsyncSession) -> None:
        if not await self.has_authority(credential.name, session):
            raise Unauthorized(
                f"{self.ledger_name} ledger: {credential.name} is missing role {GAME_AUTHORITY}"
            )
        if is_null_account(account):
            raise LedgerError(f"{self.ledger_name} ledger: mint to the zero account")


class CurrencyLedger(_AuthorizedLedger):
    ledger_name = "currency"

    async def credit_privileged(
        self, account: str, amount: int, credential: ServiceCredential, session: AsyncSession
    ) -> int:
        """Mint currency to an account on behalf of the game

        Args:
            account (str): Account to credit
            amount (int): Amount to mint, zero is a no-op credit
            credential (ServiceCredential): Credential of the calling service

        Raises:
            Unauthorized: The credential does not hold the game authority
            LedgerError: Zero account, negative amount or a balance that would overflow

        Returns:
            int: New balance of the account
        """
        await self._check_mint(credential, account, session)
        if amount < 0:
            raise LedgerError(f"currency ledger: invalid amount {amount}")

        stmt = select(CurrencyBalance).where(CurrencyBalance.account == account).with_for_update()
        result = await session.execute(stmt)
        balance = result.scalars().first()
        if balance is None:
            balance = CurrencyBalance(account=account, balance=0)
            session.add(balance)
        if (balance.balance or 0) + amount > MAX_STORED_VALUE:
            raise LedgerError(f"currency ledger: balance of {account} would overflow")
        balance.balance = (balance.balance or 0) + amount
        await session.flush()
        return balance.balance

    async def balance_of(self, account: str, session: AsyncSession) -> int:
        stmt = select(CurrencyBalance.balance).where(CurrencyBalance.account == account)
        result = await session.execute(stmt)
        return result.scalar() or 0


class ItemLedger(_AuthorizedLedger):
    ledger_name = "item"

    async def mint_batch(
        self,
        account: str,
        item_ids: Sequence[int],
        counts: Sequence[int],
        credential: ServiceCredential,
        session: AsyncSession,
    ) -> None:
        """Mint several item kinds to an account on behalf of the game

        Args:
            account (str): Account to mint to
            item_ids (Sequence[int]): Item type identifiers
            counts (Sequence[int]): Positive count per item id
            credential (ServiceCredential): Credential of the calling service

        Raises:
            Unauthorized: The credential does not hold the game authority
            LedgerError: Zero account, mismatched lengths or non-positive counts
        """
        await self._check_mint(credential, account, session)
        if len(item_ids) != len(counts):
            raise LedgerError("item ledger: ids and counts length mismatch")
        if any(count <= 0 for count in counts):
            raise LedgerError("item ledger: counts must be positive")

        for item_id, count in zip(item_ids, counts):
            stmt = (
                select(ItemBalance)
                .where(ItemBalance.account == account, ItemBalance.item_id == item_id)
                .with_for_update()
            )
            result = await session.execute(stmt)
            balance = result.scalars().first()
            if balance is None:
                balance = ItemBalance(account=account, item_id=item_id, balance=0)
                session.add(balance)
            balance.balance = (balance.balance or 0) + count
        await session.flush()

    async def balance_of(self, account: str, item_id: int, session: AsyncSession) -> int:
        stmt = select(ItemBalance.balance).where(
            ItemBalance.account == account, ItemBalance.item_id == item_id
        )
        result = await session.execute(stmt)
        return result.scalar() or 0
