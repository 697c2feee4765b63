"""Service instances shared by the routers.

Tests replace them through ``app.dependency_overrides``.
"""

from datetime import timedelta

from daily_loot.claim_publisher import create_claim_publisher
from daily_loot.load_secrets import claim_cooldown_seconds
from daily_loot.services.claim_resolver import ClaimResolver
from daily_loot.services.config_store import RewardConfigStore
from daily_loot.services.distribution_report import DistributionReport

config_store = RewardConfigStore()
claim_resolver = ClaimResolver(
    publisher=create_claim_publisher(),
    cooldown=timedelta(seconds=claim_cooldown_seconds),
)
distribution = DistributionReport()


def get_config_store() -> RewardConfigStore:
    return config_store


def get_claim_resolver() -> ClaimResolver:
    return claim_resolver


def get_distribution_report() -> DistributionReport:
    return distribution
