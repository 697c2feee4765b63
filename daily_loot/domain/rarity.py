"""Rarity tiers and the rarity roll table.

The table holds five ascending thresholds and an exclusive upper bound for
rolls. Each threshold is the lower edge of its tier's band; rolls that no
lower band captures fall into Legendary, so the Legendary band is
``[legendary, max_roll)``.
"""

from dataclasses import astuple, dataclass
from enum import IntEnum

from daily_loot.exceptions import InvalidOrdering


# Largest value a signed 64-bit column holds. Rolls, amounts and item ids stay at or below it.
MAX_STORED_VALUE = 2**63 - 1


class RarityTier(IntEnum):
    COMMON = 0
    UNCOMMON = 1
    RARE = 2
    EPIC = 3
    LEGENDARY = 4


class RewardKind(IntEnum):
    CURRENCY = 0
    ITEM = 1


@dataclass(frozen=True)
class RarityRollConfig:
    common: int
    uncommon: int
    rare: int
    epic: int
    legendary: int
    max_roll: int

    def validate(self) -> None:
        """Raise InvalidOrdering unless the thresholds are strictly increasing."""
        if self.common < 0:
            raise InvalidOrdering("Common roll must not be negative")
        if self.common >= self.uncommon:
            raise InvalidOrdering("Common must be less rare than uncommon")
        if self.uncommon >= self.rare:
            raise InvalidOrdering("Uncommon must be less rare than rare")
        if self.rare >= self.epic:
            raise InvalidOrdering("Rare must be less rare than epic")
        if self.epic >= self.legendary:
            raise InvalidOrdering("Epic must be less rare than legendary")
        if self.legendary > self.max_roll:
            raise InvalidOrdering(
                "Legendary rarity level must be less than or equal to the max rarity roll"
            )
        if self.max_roll > MAX_STORED_VALUE:
            raise InvalidOrdering("Max rarity roll is too large")

    def resolve_tier(self, roll: int) -> RarityTier:
        """Map a roll in [0, max_roll) to its rarity tier."""
        if roll < self.uncommon:
            return RarityTier.COMMON
        if roll < self.rare:
            return RarityTier.UNCOMMON
        if roll < self.epic:
            return RarityTier.RARE
        if roll < self.legendary:
            return RarityTier.EPIC
        return RarityTier.LEGENDARY

    def band_widths(self) -> list[int]:
        """Number of rolls in [0, max_roll) that land in each tier, in tier order."""
        return [
            self.uncommon,
            self.rare - self.uncommon,
            self.epic - self.rare,
            self.legendary - self.epic,
            self.max_roll - self.legendary,
        ]

    def as_tuple(self) -> tuple[int, ...]:
        return astuple(self)


# 60 / 20 / 10 / 8 / 2 percent
DEFAULT_RARITY_ROLLS = RarityRollConfig(
    common=0, uncommon=60, rare=80, epic=90, legendary=98, max_roll=100
)


def build_rarity_rolls(
    common: int, uncommon: int, rare: int, epic: int, legendary: int, max_roll: int
) -> RarityRollConfig:
    """Build a validated rarity roll table.

    Raises:
        InvalidOrdering: The thresholds are not strictly increasing or exceed max_roll
    """
    config = RarityRollConfig(common, uncommon, rare, epic, legendary, max_roll)
    config.validate()
    return config
