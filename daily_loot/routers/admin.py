import logging
from fastapi import APIRouter, Depends

from daily_loot.authentication.basic_authentication import require_admin
from daily_loot.converter import DataConverter
from daily_loot.dependencies import get_config_store
from daily_loot.exceptions import LootError, to_http_exception
from daily_loot.models.basic_authentication_models import UserModel
from daily_loot.models.dc_models import (
    RarityRollsModel,
    RarityRollsResponseModel,
    RarityTierModel,
    RewardDescriptorModel,
    RewardKindModel,
    RewardSettingModel,
)
from daily_loot.services.config_store import RewardConfigStore

admin_router = APIRouter(prefix="/admin", tags=["admin"])


class RarityRollsAdminAPI:
    @staticmethod
    @admin_router.post("/rarity-rolls", response_model=RarityRollsResponseModel)
    async def set_rarity_rolls(
        rarity_rolls: RarityRollsModel,
        user_data: UserModel = Depends(require_admin),
        config_store: RewardConfigStore = Depends(get_config_store),
    ) -> RarityRollsResponseModel:
        """Replace the rarity roll table

        Args:
            rarity_rolls (RarityRollsModel): common < uncommon < rare < epic < legendary <= max_roll
            user_data (UserModel): Authenticated administrator

        Returns:
            RarityRollsResponseModel: The stored table with its version
        """
        try:
            stored = await config_store.set_rarity_rolls(
                user_data,
                rarity_rolls.common,
                rarity_rolls.uncommon,
                rarity_rolls.rare,
                rarity_rolls.epic,
                rarity_rolls.legendary,
                rarity_rolls.max_roll,
            )
        except LootError as e:
            logging.warning(f"Rejected rarity rolls from {user_data.username}: {e.message}")
            raise to_http_exception(e)
        return DataConverter.rarity_config_to_model(
            DataConverter.rarity_schema_to_config(stored), stored.version
        )


class RewardAdminAPI:
    @staticmethod
    @admin_router.put("/rewards/{kind}/{tier}", response_model=RewardSettingModel)
    async def set_reward(
        kind: RewardKindModel,
        tier: RarityTierModel,
        reward: RewardDescriptorModel,
        user_data: UserModel = Depends(require_admin),
        config_store: RewardConfigStore = Depends(get_config_store),
    ) -> RewardSettingModel:
        """Replace the reward of one (kind, tier) pair

        Args:
            kind (RewardKindModel): currency or item
            tier (RarityTierModel): common, uncommon, rare, epic or legendary
            reward (RewardDescriptorModel): min_amount/max_amount for currency, item_pool for items
            user_data (UserModel): Authenticated administrator

        Returns:
            RewardSettingModel: The stored reward
        """
        try:
            descriptor = await config_store.set_reward(
                user_data,
                DataConverter.kind_to_domain(kind),
                DataConverter.tier_to_domain(tier),
                reward.min_amount,
                reward.max_amount,
                reward.item_pool,
            )
        except LootError as e:
            logging.warning(f"Rejected reward {kind.value}/{tier.value} from {user_data.username}: {e.message}")
            raise to_http_exception(e)
        return DataConverter.reward_descriptor_to_model(descriptor)
