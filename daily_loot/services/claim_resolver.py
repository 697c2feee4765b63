"""Daily claim use case.

One claim runs Gate -> RollTier -> DecideKind -> ResolvePayout -> RecordClaim ->
Apply -> Log inside a single transaction. Anything raised before the
transaction commits rolls the whole claim back: no balance changes, no
cooldown update, no log entry.

NOTE: Do not call CRUD helpers that commit() inside this transaction.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from daily_loot.claim_lock_manager import ClaimLockManager
from daily_loot.claim_publisher import ClaimPublisher
from daily_loot.converter import DataConverter
from daily_loot.crud import CreateData, ReadData, UpdateData
from daily_loot.db import Session
from daily_loot.domain.claim_rules import ClaimOutcome, is_null_account, resolve_claim
from daily_loot.domain.cooldown import CLAIM_COOLDOWN, as_utc, can_claim, next_claim_at
from daily_loot.domain.randomness import DrawContext, HashRandomnessSource, RandomnessSource
from daily_loot.domain.rarity import RewardKind
from daily_loot.exceptions import ClaimTooSoon, InvalidRecipient, LedgerError
from daily_loot.ledgers import CurrencyLedger, ItemLedger, ServiceCredential
from daily_loot.load_secrets import game_authority_name, legendary_box_item_id
from daily_loot.models.dc_models import ClaimEventModel, ClaimStatusModel
from daily_loot.services.config_store import RewardConfigStore

ITEM_MINT_COUNT = 1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_seed() -> str:
    return secrets.token_hex(16)


class ClaimResolver:
    def __init__(
        self,
        Session: async_sessionmaker = Session,
        randomness: RandomnessSource | None = None,
        currency_ledger: CurrencyLedger | None = None,
        item_ledger: ItemLedger | None = None,
        credential: ServiceCredential | None = None,
        lock_manager: ClaimLockManager | None = None,
        publisher: ClaimPublisher | None = None,
        clock: Callable[[], datetime] = utc_now,
        seed_factory: Callable[[], str] = new_seed,
        cooldown: timedelta = CLAIM_COOLDOWN,
        legendary_box_item_id: int = legendary_box_item_id,
    ):
        self.Session = Session
        self.randomness = randomness or HashRandomnessSource()
        self.currency_ledger = currency_ledger or CurrencyLedger()
        self.item_ledger = item_ledger or ItemLedger()
        self.credential = credential or ServiceCredential(game_authority_name)
        self.lock_manager = lock_manager or ClaimLockManager()
        self.publisher = publisher
        self.clock = clock
        self.seed_factory = seed_factory
        self.cooldown = cooldown
        self.legendary_box_item_id = legendary_box_item_id

    async def claim(self, recipient: str, entropy: int, caller: str | None = None) -> ClaimEventModel:
        """Claim the daily reward for the recipient

        Args:
            recipient (str): Account that receives the reward
            entropy (int): Caller supplied entropy mixed into the draws
            caller (str | None): Identity of the caller, defaults to the recipient

        Raises:
            InvalidRecipient: The recipient is a null or zero account
            ClaimTooSoon: The recipient claimed less than one cooldown ago
            RewardNotConfigured: The rolled (kind, tier) has no reward
            Unauthorized: This engine lacks the game authority on a ledger
            LedgerError: A ledger rejected the mint

        Returns:
            ClaimEventModel: The committed claim
        """
        if is_null_account(recipient):
            raise InvalidRecipient(recipient)
        recipient = recipient.strip()
        caller = caller or recipient

        async with self.lock_manager.hold(recipient):
            now = as_utc(self.clock())
            async with self.Session() as session:
                async with session.begin():
                    event = await self._claim_in_transaction(recipient, entropy, caller, now, session)

        logging.info(
            f"Daily claim {event.claim_id}: {recipient} got {event.rarity_tier.value} "
            f"{event.reward_kind.value} {event.payload}"
        )
        if self.publisher is not None:
            await self.publisher.publish(event)
        return event

    async def _claim_in_transaction(
        self, recipient: str, entropy: int, caller: str, now: datetime, session: AsyncSession
    ) -> ClaimEventModel:
        # Gate
        claim_record = await ReadData.read_claim_record_for_update(recipient, session)
        last_claim_at = as_utc(claim_record.last_claim_at) if claim_record is not None else None
        if not can_claim(last_claim_at, now, self.cooldown):
            logging.warning(f"Claim too soon for {recipient}, last claim at {last_claim_at}")
            raise ClaimTooSoon(recipient, next_claim_at(last_claim_at, self.cooldown))

        # RollTier, DecideKind, ResolvePayout
        rarity_rolls, _ = await RewardConfigStore.read_rarity_rolls(session)
        rewards = await RewardConfigStore.read_reward_table(session)
        seed = self.seed_factory()
        context = DrawContext(timestamp=int(now.timestamp()), unpredictable_seed=seed, caller=caller)
        outcome = resolve_claim(
            entropy, context, rarity_rolls, rewards, self.randomness, self.legendary_box_item_id
        )

        # RecordClaim: flushed before Apply so that only a conflict on the
        # claim record reads as a concurrent claim
        if claim_record is None:
            try:
                await CreateData.add_claim_record(recipient, now, session)
            except IntegrityError:
                logging.warning(f"Concurrent first claim rejected for {recipient}")
                raise ClaimTooSoon(recipient, now + self.cooldown)
        else:
            await UpdateData.update_last_claim_at(claim_record, now, session)

        # Apply
        await self._apply(recipient, outcome, session)

        # Log
        claim_log = await CreateData.add_claim_log(
            recipient=recipient,
            reward_kind=outcome.reward_kind,
            rarity_tier=outcome.rarity_tier,
            payload=outcome.payload,
            entropy=entropy,
            unpredictable_seed=seed,
            caller=caller,
            claimed_at=now,
            session=session,
        )
        return DataConverter.claim_log_to_event_model(claim_log, self.cooldown)

    async def _apply(self, recipient: str, outcome: ClaimOutcome, session: AsyncSession) -> None:
        try:
            if outcome.reward_kind == RewardKind.CURRENCY:
                await self.currency_ledger.credit_privileged(recipient, outcome.payload, self.credential, session)
            else:
                await self.item_ledger.mint_batch(
                    recipient, [outcome.payload], [ITEM_MINT_COUNT], self.credential, session
                )
        except IntegrityError as e:
            raise LedgerError(f"{outcome.reward_kind.name.lower()} ledger rejected the mint: {e.orig}")

    async def claim_status(self, account: str) -> ClaimStatusModel:
        """Read the last claim time of an account and when it can claim again"""
        async with self.Session() as session:
            claim_record = await ReadData.read_claim_record(account, session)
        last_claim_at = as_utc(claim_record.last_claim_at) if claim_record is not None else None
        return ClaimStatusModel(
            account=account,
            last_claim_at=last_claim_at,
            next_claim_at=next_claim_at(last_claim_at, self.cooldown),
            can_claim=can_claim(last_claim_at, as_utc(self.clock()), self.cooldown),
        )

    async def claim_log(self, limit: int = 100, recipient: str | None = None) -> List[ClaimEventModel]:
        async with self.Session() as session:
            claim_logs = await ReadData.read_claim_logs(session, limit=limit, recipient=recipient)
        return [DataConverter.claim_log_to_event_model(claim_log, self.cooldown) for claim_log in claim_logs]

    async def grant_game_authority(self) -> None:
        """Grant this engine's credential the game authority on both ledgers"""
        async with self.Session() as session:
            async with session.begin():
                await self.currency_ledger.grant_authority(self.credential.name, session)
                await self.item_ledger.grant_authority(self.credential.name, session)
