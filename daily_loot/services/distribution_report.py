import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import async_sessionmaker

from daily_loot.crud import ReadData
from daily_loot.db import Session
from daily_loot.domain.statistics import distribution_report
from daily_loot.models.dc_models import DistributionReportModel
from daily_loot.services.config_store import RewardConfigStore


class DistributionReport:
    """Compares the claims of a time window with the configured rarity distribution."""

    def __init__(self, Session: async_sessionmaker = Session):
        self.Session = Session

    async def build(self, since: datetime) -> DistributionReportModel:
        """Build the report for every claim made at or after since

        Args:
            since (datetime): Start of the window

        Returns:
            DistributionReportModel: Theoretical and practical shares per tier and kind
        """
        async with self.Session() as session:
            rarity_rolls, _ = await RewardConfigStore.read_rarity_rolls(session)
            outcomes = await ReadData.read_claim_outcomes_since(since, session)
        tiers = [tier for tier, _ in outcomes]
        kinds = [kind for _, kind in outcomes]
        report = distribution_report(rarity_rolls, tiers, kinds)
        return DistributionReportModel(since=since, **report)

    async def log_report(self, hours: int = 24) -> None:
        """Scheduled job: log the distribution of the last hours of claims"""
        since = datetime.now(timezone.utc) - timedelta(hours=hours)
        report = await self.build(since)
        logging.info("-----------Theoretical Distribution-------------")
        logging.info(f"{report.theoretical_kinds}")
        logging.info(f"{report.theoretical_tiers}")
        logging.info(f"-----------Practical Distribution ({report.claims} claims)-------------")
        logging.info(f"{report.practical_kinds}")
        logging.info(f"{report.practical_tiers}")
