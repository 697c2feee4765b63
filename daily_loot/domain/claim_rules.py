"""Claim resolution rules that are independent from HTTP and DB.

Rule of thumb:
- OK: rolling tiers, deciding the reward kind, picking the payout.
- Not OK: touching DB sessions, ledgers, Redis, datetime.now(), etc.
"""

import re
from dataclasses import dataclass
from typing import Mapping

from daily_loot.domain.randomness import DrawContext, RandomnessSource
from daily_loot.domain.rarity import RarityRollConfig, RarityTier, RewardKind
from daily_loot.domain.rewards import PAYOUT_ROLL_BOUND, RewardDescriptor, resolve_payout
from daily_loot.exceptions import RewardNotConfigured

TIER_SALT = "tier"
KIND_SALT = "kind"
PAYOUT_SALT = "payout"

_ZERO_ACCOUNT = re.compile(r"^(0x)?0+$", re.IGNORECASE)


@dataclass(frozen=True)
class ClaimOutcome:
    rarity_tier: RarityTier
    reward_kind: RewardKind
    payload: int
    tier_roll: int
    kind_roll: int
    payout_roll: int


def is_null_account(account: str | None) -> bool:
    """Return True for a missing, blank or all-zero account identifier."""
    if account is None:
        return True
    account = account.strip()
    return account == "" or _ZERO_ACCOUNT.match(account) is not None


def decide_kind(tier: RarityTier, kind_roll: int) -> RewardKind:
    """Legendary always pays the box item; other tiers split on the parity of kind_roll."""
    if tier == RarityTier.LEGENDARY:
        return RewardKind.ITEM
    if kind_roll % 2 == 0:
        return RewardKind.CURRENCY
    return RewardKind.ITEM


def pick_descriptor(
    rewards: Mapping[tuple[RewardKind, RarityTier], RewardDescriptor],
    kind: RewardKind,
    tier: RarityTier,
    legendary_box_item_id: int,
) -> RewardDescriptor:
    """Look up the descriptor for (kind, tier).

    A Legendary item without a configured pool falls back to the box item.

    Raises:
        RewardNotConfigured: No descriptor exists for the pair
    """
    descriptor = rewards.get((kind, tier))
    if descriptor is not None:
        return descriptor
    if kind == RewardKind.ITEM and tier == RarityTier.LEGENDARY:
        return RewardDescriptor(kind, tier, item_pool=(legendary_box_item_id,))
    raise RewardNotConfigured(f"No {kind.name.lower()} reward configured for {tier.name.lower()} tier")


def resolve_claim(
    entropy: int,
    context: DrawContext,
    rarity_rolls: RarityRollConfig,
    rewards: Mapping[tuple[RewardKind, RarityTier], RewardDescriptor],
    randomness: RandomnessSource,
    legendary_box_item_id: int,
) -> ClaimOutcome:
    """Roll the tier, decide the reward kind and resolve the payout of one claim.

    Three draws with distinct salts keep the tier, the kind and the payout
    independent of each other.

    Args:
        entropy (int): Caller supplied entropy
        context (DrawContext): Timestamp, unpredictable seed and caller of the claim
        rarity_rolls (RarityRollConfig): Current rarity roll table
        rewards (Mapping): Reward descriptors keyed by (kind, tier)
        randomness (RandomnessSource): Source of the three draws
        legendary_box_item_id (int): Item paid for Legendary when no pool is configured

    Returns:
        ClaimOutcome: Resolved tier, kind, payload and the rolls that produced them
    """
    tier_roll = randomness.draw(entropy, context, TIER_SALT, rarity_rolls.max_roll)
    tier = rarity_rolls.resolve_tier(tier_roll)

    kind_roll = randomness.draw(entropy, context, KIND_SALT, 2)
    kind = decide_kind(tier, kind_roll)

    descriptor = pick_descriptor(rewards, kind, tier, legendary_box_item_id)
    payout_roll = randomness.draw(entropy, context, PAYOUT_SALT, PAYOUT_ROLL_BOUND)
    payload = resolve_payout(descriptor, payout_roll, PAYOUT_ROLL_BOUND)

    return ClaimOutcome(
        rarity_tier=tier,
        reward_kind=kind,
        payload=payload,
        tier_roll=tier_roll,
        kind_roll=kind_roll,
        payout_roll=payout_roll,
    )
