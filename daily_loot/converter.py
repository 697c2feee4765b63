from datetime import timedelta

from daily_loot.domain.cooldown import as_utc
from daily_loot.domain.rarity import RarityRollConfig, RarityTier, RewardKind
from daily_loot.domain.rewards import RewardDescriptor
from daily_loot.models.dc_models import (
    ClaimEventModel,
    RarityRollsResponseModel,
    RarityTierModel,
    RewardKindModel,
    RewardSettingModel,
)
from daily_loot.models.schema_models import ClaimLogSchema, RarityRollSchema, RewardSettingSchema


class DataConverter:
    """This class is used to convert data between the database, the domain and the client formats."""

    @staticmethod
    def tier_to_domain(tier: RarityTierModel) -> RarityTier:
        return RarityTier[RarityTierModel(tier).name.upper()]

    @staticmethod
    def kind_to_domain(kind: RewardKindModel) -> RewardKind:
        return RewardKind[RewardKindModel(kind).name.upper()]

    @staticmethod
    def tier_to_model(tier: int) -> RarityTierModel:
        return RarityTierModel(RarityTier(tier).name.lower())

    @staticmethod
    def kind_to_model(kind: int) -> RewardKindModel:
        return RewardKindModel(RewardKind(kind).name.lower())

    @staticmethod
    def rarity_schema_to_config(rarity_rolls: RarityRollSchema) -> RarityRollConfig:
        """Convert the stored rarity roll row to the domain table

        Args:
            rarity_rolls (RarityRollSchema): Latest version of the rarity roll table

        Returns:
            RarityRollConfig: Table used to resolve tiers
        """
        return RarityRollConfig(
            common=rarity_rolls.common_roll,
            uncommon=rarity_rolls.uncommon_roll,
            rare=rarity_rolls.rare_roll,
            epic=rarity_rolls.epic_roll,
            legendary=rarity_rolls.legendary_roll,
            max_roll=rarity_rolls.max_roll,
        )

    @staticmethod
    def rarity_config_to_model(config: RarityRollConfig, version: int | None) -> RarityRollsResponseModel:
        return RarityRollsResponseModel(
            common=config.common,
            uncommon=config.uncommon,
            rare=config.rare,
            epic=config.epic,
            legendary=config.legendary,
            max_roll=config.max_roll,
            version=version,
        )

    @staticmethod
    def reward_schema_to_descriptor(reward: RewardSettingSchema) -> RewardDescriptor:
        return RewardDescriptor(
            kind=RewardKind(reward.reward_kind),
            tier=RarityTier(reward.rarity_tier),
            min_amount=reward.min_amount,
            max_amount=reward.max_amount,
            item_pool=tuple(reward.item_pool),
        )

    @staticmethod
    def reward_descriptor_to_model(descriptor: RewardDescriptor) -> RewardSettingModel:
        return RewardSettingModel(
            reward_kind=DataConverter.kind_to_model(descriptor.kind),
            rarity_tier=DataConverter.tier_to_model(descriptor.tier),
            min_amount=descriptor.min_amount,
            max_amount=descriptor.max_amount,
            item_pool=list(descriptor.item_pool),
        )

    @staticmethod
    def claim_log_to_event_model(claim_log: ClaimLogSchema, cooldown: timedelta) -> ClaimEventModel:
        """Convert a claim log entry to the event sent to the client

        Args:
            claim_log (ClaimLogSchema): Stored claim
            cooldown (timedelta): Claim cooldown, used to compute next_claim_at

        Returns:
            ClaimEventModel: The claim event with enum names instead of numeric codes
        """
        claimed_at = as_utc(claim_log.claimed_at)
        return ClaimEventModel(
            claim_id=claim_log.claim_id,
            recipient=claim_log.recipient,
            reward_kind=DataConverter.kind_to_model(claim_log.reward_kind),
            rarity_tier=DataConverter.tier_to_model(claim_log.rarity_tier),
            payload=claim_log.payload,
            claimed_at=claimed_at,
            next_claim_at=claimed_at + cooldown,
        )
