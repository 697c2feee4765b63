from pydantic import BaseModel, Field
from enum import Enum
from uuid import UUID
from datetime import datetime
from typing import Dict, List, Optional

from daily_loot.domain.rarity import MAX_STORED_VALUE


class RewardKindModel(str, Enum):
    currency = "currency"
    item = "item"


class RarityTierModel(str, Enum):
    common = "common"
    uncommon = "uncommon"
    rare = "rare"
    epic = "epic"
    legendary = "legendary"


class RarityRollsModel(BaseModel):
    common: int
    uncommon: int
    rare: int
    epic: int
    legendary: int
    max_roll: int

    class Config:
        from_attributes = True


class RarityRollsResponseModel(RarityRollsModel):
    version: int | None  # None while the built-in default table is in use


class RewardDescriptorModel(BaseModel):
    min_amount: int = Field(0, ge=0, le=MAX_STORED_VALUE)  # ignored for item rewards
    max_amount: int = Field(0, ge=0, le=MAX_STORED_VALUE)  # ignored for item rewards
    item_pool: List[int] = []  # ignored for currency rewards


class RewardSettingModel(RewardDescriptorModel):
    reward_kind: RewardKindModel
    rarity_tier: RarityTierModel


class ClaimRequestModel(BaseModel):
    recipient: str
    entropy: int = Field(ge=0)


class ClaimEventModel(BaseModel):
    """Result of a claim. payload is an amount for currency and an item id for items."""
    claim_id: UUID
    recipient: str
    reward_kind: RewardKindModel
    rarity_tier: RarityTierModel
    payload: int
    claimed_at: datetime
    next_claim_at: datetime


class ClaimStatusModel(BaseModel):
    account: str
    last_claim_at: Optional[datetime] = None
    next_claim_at: Optional[datetime] = None
    can_claim: bool


class DistributionReportModel(BaseModel):
    since: datetime
    claims: int
    theoretical_tiers: Dict[str, float]
    practical_tiers: Dict[str, float]
    theoretical_kinds: Dict[str, float]
    practical_kinds: Dict[str, float]
