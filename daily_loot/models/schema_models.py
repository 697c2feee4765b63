from pydantic import BaseModel
from typing import List, Optional
from uuid import UUID
from datetime import datetime


class RarityRollSchema(BaseModel):
    version: int
    common_roll: int
    uncommon_roll: int
    rare_roll: int
    epic_roll: int
    legendary_roll: int
    max_roll: int
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RewardSettingSchema(BaseModel):
    reward_kind: int
    rarity_tier: int
    min_amount: int
    max_amount: int
    item_pool: List[int]
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True


class ClaimRecordSchema(BaseModel):
    account: str
    last_claim_at: datetime

    class Config:
        from_attributes = True


class ClaimLogSchema(BaseModel):
    claim_id: UUID
    recipient: str
    reward_kind: int
    rarity_tier: int
    payload: int
    entropy: str
    unpredictable_seed: str
    caller: str
    claimed_at: datetime

    class Config:
        from_attributes = True
