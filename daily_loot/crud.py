from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from typing import List
from uuid6 import uuid7

from daily_loot.domain.rarity import RarityRollConfig
from daily_loot.domain.rewards import RewardDescriptor
from daily_loot.models.schema_models import (
    ClaimLogSchema,
    ClaimRecordSchema,
    RarityRollSchema,
    RewardSettingSchema,
)
from daily_loot.models.schemas import ClaimLog, ClaimRecord, RarityRolls, RewardSetting

# These helpers never commit. The service layer owns the transaction
# (``async with session.begin()``) around them.


class CreateData:
    @staticmethod
    async def add_rarity_rolls(config: RarityRollConfig, updated_by: str, session: AsyncSession) -> RarityRollSchema:
        """Add a new version of the rarity roll table

        Args:
            config (RarityRollConfig): Validated rarity roll table
            updated_by (str): Username of the administrator

        Returns:
            RarityRollSchema: The stored row with its version
        """
        rarity_rolls = RarityRolls(
            common_roll=config.common,
            uncommon_roll=config.uncommon,
            rare_roll=config.rare,
            epic_roll=config.epic,
            legendary_roll=config.legendary,
            max_roll=config.max_roll,
            updated_by=updated_by,
        )
        session.add(rarity_rolls)
        await session.flush()
        return RarityRollSchema.model_validate(rarity_rolls)

    @staticmethod
    async def add_claim_record(account: str, claimed_at: datetime, session: AsyncSession) -> None:
        session.add(ClaimRecord(account=account, last_claim_at=claimed_at))
        await session.flush()

    @staticmethod
    async def add_claim_log(
        recipient: str,
        reward_kind: int,
        rarity_tier: int,
        payload: int,
        entropy: int,
        unpredictable_seed: str,
        caller: str,
        claimed_at: datetime,
        session: AsyncSession,
    ) -> ClaimLogSchema:
        """Append a claim to the claim log

        Returns:
            ClaimLogSchema: The stored claim
        """
        claim_log = ClaimLog(
            claim_id=uuid7(),
            recipient=recipient,
            reward_kind=int(reward_kind),
            rarity_tier=int(rarity_tier),
            payload=payload,
            entropy=str(entropy),
            unpredictable_seed=unpredictable_seed,
            caller=caller,
            claimed_at=claimed_at,
        )
        session.add(claim_log)
        await session.flush()
        return ClaimLogSchema.model_validate(claim_log)


class ReadData:
    @staticmethod
    async def read_latest_rarity_rolls(session: AsyncSession) -> RarityRollSchema | None:
        """Read the current (highest version) rarity roll table

        Returns:
            RarityRollSchema | None: None if no administrator has set the table yet
        """
        stmt = select(RarityRolls).order_by(desc(RarityRolls.version)).limit(1)
        result = await session.execute(stmt)
        result = result.scalars().first()
        if result is None:
            return None
        return RarityRollSchema.model_validate(result)

    @staticmethod
    async def read_reward_settings(session: AsyncSession) -> List[RewardSettingSchema]:
        stmt = select(RewardSetting).order_by(RewardSetting.reward_kind, RewardSetting.rarity_tier)
        result = await session.execute(stmt)
        return [RewardSettingSchema.model_validate(row) for row in result.scalars().all()]

    @staticmethod
    async def read_claim_record(account: str, session: AsyncSession) -> ClaimRecordSchema | None:
        stmt = select(ClaimRecord).where(ClaimRecord.account == account)
        result = await session.execute(stmt)
        result = result.scalars().first()
        if result is None:
            return None
        return ClaimRecordSchema.model_validate(result)

    @staticmethod
    async def read_claim_record_for_update(account: str, session: AsyncSession) -> ClaimRecord | None:
        """Read the claim record row and lock it until the transaction ends

        Args:
            account (str): Account to read

        Returns:
            ClaimRecord | None: ORM row to update, None if the account never claimed
        """
        stmt = select(ClaimRecord).where(ClaimRecord.account == account).with_for_update()
        result = await session.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def read_claim_logs(
        session: AsyncSession, limit: int = 100, recipient: str | None = None
    ) -> List[ClaimLogSchema]:
        """Read the claim log, newest first

        Args:
            limit (int): Maximum number of claims
            recipient (str | None): Only claims of this account if given

        Returns:
            List[ClaimLogSchema]: Claims ordered from newest to oldest
        """
        stmt = select(ClaimLog)
        if recipient is not None:
            stmt = stmt.where(ClaimLog.recipient == recipient)
        stmt = stmt.order_by(desc(ClaimLog.claimed_at), desc(ClaimLog.claim_id)).limit(limit)
        result = await session.execute(stmt)
        return [ClaimLogSchema.model_validate(row) for row in result.scalars().all()]

    @staticmethod
    async def read_claim_outcomes_since(since: datetime, session: AsyncSession) -> List[tuple[int, int]]:
        """Read (rarity_tier, reward_kind) of every claim made at or after since"""
        stmt = select(ClaimLog.rarity_tier, ClaimLog.reward_kind).where(ClaimLog.claimed_at >= since)
        result = await session.execute(stmt)
        return [(row.rarity_tier, row.reward_kind) for row in result.all()]


class UpdateData:
    @staticmethod
    async def upsert_reward_setting(descriptor: RewardDescriptor, updated_by: str, session: AsyncSession) -> RewardSettingSchema:
        """Replace the reward of one (kind, tier) pair, leaving other pairs untouched

        Args:
            descriptor (RewardDescriptor): Validated reward descriptor
            updated_by (str): Username of the administrator

        Returns:
            RewardSettingSchema: The stored reward
        """
        stmt = (
            select(RewardSetting)
            .where(
                RewardSetting.reward_kind == int(descriptor.kind),
                RewardSetting.rarity_tier == int(descriptor.tier),
            )
            .with_for_update()
        )
        result = await session.execute(stmt)
        reward = result.scalars().first()
        if reward is None:
            reward = RewardSetting(reward_kind=int(descriptor.kind), rarity_tier=int(descriptor.tier))
            session.add(reward)

        reward.min_amount = descriptor.min_amount
        reward.max_amount = descriptor.max_amount
        reward.item_pool = list(descriptor.item_pool)
        reward.updated_by = updated_by
        await session.flush()
        return RewardSettingSchema.model_validate(reward)

    @staticmethod
    async def update_last_claim_at(claim_record: ClaimRecord, claimed_at: datetime, session: AsyncSession) -> None:
        claim_record.last_claim_at = claimed_at
        await session.flush()
