import numpy as np
from typing import Sequence

from daily_loot.domain.rarity import RarityRollConfig, RarityTier, RewardKind

TIER_COUNT = len(RarityTier)
KIND_COUNT = len(RewardKind)


def theoretical_tier_distribution(rarity_rolls: RarityRollConfig) -> np.ndarray:
    """Probability of each tier implied by the rarity roll table

    Args:
        rarity_rolls (RarityRollConfig): Current rarity roll table

    Returns:
        np.ndarray: Probability per tier, in tier order
    """
    widths = np.array(rarity_rolls.band_widths(), dtype=np.float64)
    return widths / np.float64(rarity_rolls.max_roll)


def theoretical_kind_distribution(rarity_rolls: RarityRollConfig) -> np.ndarray:
    """Probability of each reward kind. Legendary always pays an item, the rest splits evenly."""
    legendary = theoretical_tier_distribution(rarity_rolls)[RarityTier.LEGENDARY]
    currency = (1.0 - legendary) / 2.0
    return np.array([currency, 1.0 - currency], dtype=np.float64)


def empirical_distribution(values: Sequence[int], size: int) -> np.ndarray:
    """Share of each value in 0..size-1. An empty sample gives all zeros."""
    counts = np.bincount(np.asarray(values, dtype=np.int64), minlength=size)[:size]
    total = counts.sum()
    if total == 0:
        return np.zeros(size, dtype=np.float64)
    return counts / np.float64(total)


def distribution_report(
    rarity_rolls: RarityRollConfig, tiers: Sequence[int], kinds: Sequence[int]
) -> dict:
    """Compare the claimed tiers and kinds with the configured distribution

    Args:
        rarity_rolls (RarityRollConfig): Current rarity roll table
        tiers (Sequence[int]): Rarity tier of every claim in the window
        kinds (Sequence[int]): Reward kind of every claim in the window

    Returns:
        dict: Claim count, and theoretical/practical shares keyed by tier and kind name
    """
    tier_names = [tier.name for tier in RarityTier]
    kind_names = [kind.name for kind in RewardKind]
    return {
        "claims": len(tiers),
        "theoretical_tiers": dict(zip(tier_names, theoretical_tier_distribution(rarity_rolls).round(4).tolist())),
        "practical_tiers": dict(zip(tier_names, empirical_distribution(tiers, TIER_COUNT).round(4).tolist())),
        "theoretical_kinds": dict(zip(kind_names, theoretical_kind_distribution(rarity_rolls).round(4).tolist())),
        "practical_kinds": dict(zip(kind_names, empirical_distribution(kinds, KIND_COUNT).round(4).tolist())),
    }
