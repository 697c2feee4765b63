"""DB service layer for the administrator configured tables.

- Routers should not touch DB sessions directly; they call this module.
- This layer owns session/transaction boundaries.
- Every write is validated before it opens a transaction, so a malformed
  table is never stored.
"""

import logging
from typing import Dict, List, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from daily_loot.authentication.basic_authentication import ensure_admin
from daily_loot.converter import DataConverter
from daily_loot.crud import CreateData, ReadData, UpdateData
from daily_loot.db import Session
from daily_loot.domain.rarity import (
    DEFAULT_RARITY_ROLLS,
    RarityRollConfig,
    RarityTier,
    RewardKind,
    build_rarity_rolls,
)
from daily_loot.domain.rewards import RewardDescriptor, build_reward_descriptor
from daily_loot.models.basic_authentication_models import UserModel
from daily_loot.models.schema_models import RarityRollSchema

RewardTable = Dict[tuple[RewardKind, RarityTier], RewardDescriptor]


class RewardConfigStore:
    def __init__(self, Session: async_sessionmaker = Session):
        self.Session = Session

    async def set_rarity_rolls(
        self,
        user_data: UserModel,
        common: int,
        uncommon: int,
        rare: int,
        epic: int,
        legendary: int,
        max_roll: int,
    ) -> RarityRollSchema:
        """Replace the whole rarity roll table with a new version

        Args:
            user_data (UserModel): Administrator making the change

        Raises:
            Unauthorized: The user is not an administrator
            InvalidOrdering: The thresholds are not strictly increasing

        Returns:
            RarityRollSchema: The stored table with its version
        """
        ensure_admin(user_data)
        config = build_rarity_rolls(common, uncommon, rare, epic, legendary, max_roll)
        async with self.Session() as session:
            async with session.begin():
                rarity_rolls = await CreateData.add_rarity_rolls(config, user_data.username, session)
        logging.info(f"Rarity rolls v{rarity_rolls.version} set by {user_data.username}: {config.as_tuple()}")
        return rarity_rolls

    async def set_reward(
        self,
        user_data: UserModel,
        kind: RewardKind,
        tier: RarityTier,
        min_amount: int,
        max_amount: int,
        item_pool: Sequence[int],
    ) -> RewardDescriptor:
        """Replace the reward of one (kind, tier) pair

        Args:
            user_data (UserModel): Administrator making the change
            kind (RewardKind): Currency or item
            tier (RarityTier): Rarity tier the reward belongs to
            min_amount (int): Lowest currency amount, ignored for items
            max_amount (int): Highest currency amount, ignored for items
            item_pool (Sequence[int]): Candidate item ids, ignored for currency

        Raises:
            Unauthorized: The user is not an administrator
            InvalidRange: Currency reward with min_amount >= max_amount
            InvalidItemPool: Item reward with an empty pool

        Returns:
            RewardDescriptor: The stored reward
        """
        ensure_admin(user_data)
        descriptor = build_reward_descriptor(kind, tier, min_amount, max_amount, item_pool)
        async with self.Session() as session:
            async with session.begin():
                await UpdateData.upsert_reward_setting(descriptor, user_data.username, session)
        logging.info(
            f"Reward {descriptor.kind.name}/{descriptor.tier.name} set by {user_data.username}: "
            f"[{descriptor.min_amount}, {descriptor.max_amount}] pool={list(descriptor.item_pool)}"
        )
        return descriptor

    @staticmethod
    async def read_rarity_rolls(session: AsyncSession) -> tuple[RarityRollConfig, int | None]:
        """Read the current rarity roll table inside an open session

        Returns:
            tuple[RarityRollConfig, int | None]: The table and its version, None for the built-in default
        """
        rarity_rolls = await ReadData.read_latest_rarity_rolls(session)
        if rarity_rolls is None:
            return DEFAULT_RARITY_ROLLS, None
        return DataConverter.rarity_schema_to_config(rarity_rolls), rarity_rolls.version

    @staticmethod
    async def read_reward_table(session: AsyncSession) -> RewardTable:
        """Read every configured reward inside an open session, keyed by (kind, tier)"""
        rewards = await ReadData.read_reward_settings(session)
        table: RewardTable = {}
        for reward in rewards:
            descriptor = DataConverter.reward_schema_to_descriptor(reward)
            table[(descriptor.kind, descriptor.tier)] = descriptor
        return table

    async def get_rarity_rolls(self) -> tuple[RarityRollConfig, int | None]:
        async with self.Session() as session:
            return await self.read_rarity_rolls(session)

    async def get_rewards(self) -> List[RewardDescriptor]:
        async with self.Session() as session:
            table = await self.read_reward_table(session)
        return list(table.values())
