"""Reward descriptors per (reward kind, rarity tier) and payout resolution."""

from dataclasses import dataclass, field
from typing import Sequence

from daily_loot.domain.rarity import MAX_STORED_VALUE, RarityTier, RewardKind
from daily_loot.exceptions import InvalidItemPool, InvalidRange

# Upper bound (exclusive) of the roll used to pick a payout.
PAYOUT_ROLL_BOUND = 2**64


@dataclass(frozen=True)
class RewardDescriptor:
    kind: RewardKind
    tier: RarityTier
    min_amount: int = 0
    max_amount: int = 0
    item_pool: tuple[int, ...] = field(default_factory=tuple)


def build_reward_descriptor(
    kind: RewardKind,
    tier: RarityTier,
    min_amount: int,
    max_amount: int,
    item_pool: Sequence[int],
) -> RewardDescriptor:
    """Validate raw reward data and build the descriptor for one (kind, tier) pair.

    Currency rewards keep only the amount range, item rewards keep only the pool.

    Raises:
        InvalidRange: Currency reward whose range is empty, negative or too large
        InvalidItemPool: Item reward with an empty pool or an item id out of range
    """
    kind = RewardKind(kind)
    tier = RarityTier(tier)
    if kind == RewardKind.CURRENCY:
        if min_amount < 0 or min_amount >= max_amount or max_amount > MAX_STORED_VALUE:
            raise InvalidRange("Invalid reward min/max data")
        return RewardDescriptor(kind, tier, min_amount=min_amount, max_amount=max_amount)

    pool = tuple(int(item_id) for item_id in item_pool)
    if not pool or any(item_id < 0 or item_id > MAX_STORED_VALUE for item_id in pool):
        raise InvalidItemPool("Invalid reward items data")
    return RewardDescriptor(kind, tier, item_pool=pool)


def resolve_payout(descriptor: RewardDescriptor, roll: int, bound: int = PAYOUT_ROLL_BOUND) -> int:
    """Turn a payout roll into the concrete reward value.

    Args:
        descriptor (RewardDescriptor): Reward configured for the resolved kind and tier
        roll (int): Roll in [0, bound)
        bound (int): Exclusive upper bound of the roll

    Returns:
        int: Currency amount in [min_amount, max_amount] or an item id from the pool
    """
    if descriptor.kind == RewardKind.CURRENCY:
        span = descriptor.max_amount - descriptor.min_amount + 1
        return descriptor.min_amount + (roll * span) // bound
    return descriptor.item_pool[roll % len(descriptor.item_pool)]
