import logging
from datetime import datetime, timedelta, timezone
from typing import List

from fastapi import APIRouter, Depends, Query

from daily_loot.converter import DataConverter
from daily_loot.dependencies import get_claim_resolver, get_config_store, get_distribution_report
from daily_loot.domain.cooldown import as_utc
from daily_loot.exceptions import LootError, to_http_exception
from daily_loot.models.dc_models import (
    ClaimEventModel,
    ClaimRequestModel,
    ClaimStatusModel,
    DistributionReportModel,
    RarityRollsResponseModel,
    RewardSettingModel,
)
from daily_loot.services.claim_resolver import ClaimResolver
from daily_loot.services.config_store import RewardConfigStore
from daily_loot.services.distribution_report import DistributionReport

claim_router = APIRouter(tags=["claim"])


class ClaimAPI:
    @staticmethod
    @claim_router.post("/claim", response_model=ClaimEventModel)
    async def claim(
        claim_request: ClaimRequestModel,
        claim_resolver: ClaimResolver = Depends(get_claim_resolver),
    ) -> ClaimEventModel:
        """Claim the daily reward of the recipient

        Args:
            claim_request (ClaimRequestModel): recipient and entropy

        Returns:
            ClaimEventModel: reward kind, rarity tier and payload of the claim
        """
        try:
            return await claim_resolver.claim(claim_request.recipient, claim_request.entropy)
        except LootError as e:
            logging.warning(f"Claim rejected for {claim_request.recipient}: {e.code}")
            raise to_http_exception(e, now=as_utc(claim_resolver.clock()))

    @staticmethod
    @claim_router.get("/claims", response_model=List[ClaimEventModel])
    async def read_claim_log(
        limit: int = Query(100, ge=1, le=1000),
        recipient: str | None = None,
        claim_resolver: ClaimResolver = Depends(get_claim_resolver),
    ) -> List[ClaimEventModel]:
        return await claim_resolver.claim_log(limit=limit, recipient=recipient)

    @staticmethod
    @claim_router.get("/claims/distribution", response_model=DistributionReportModel)
    async def read_distribution(
        hours: int = Query(24, ge=1),
        distribution: DistributionReport = Depends(get_distribution_report),
    ) -> DistributionReportModel:
        since = datetime.now(timezone.utc) - timedelta(hours=hours)
        return await distribution.build(since)

    @staticmethod
    @claim_router.get("/claims/{account}", response_model=ClaimStatusModel)
    async def read_claim_status(
        account: str,
        claim_resolver: ClaimResolver = Depends(get_claim_resolver),
    ) -> ClaimStatusModel:
        return await claim_resolver.claim_status(account)


class ConfigAPI:
    @staticmethod
    @claim_router.get("/rarity-rolls", response_model=RarityRollsResponseModel)
    async def read_rarity_rolls(
        config_store: RewardConfigStore = Depends(get_config_store),
    ) -> RarityRollsResponseModel:
        rarity_rolls, version = await config_store.get_rarity_rolls()
        return DataConverter.rarity_config_to_model(rarity_rolls, version)

    @staticmethod
    @claim_router.get("/rewards", response_model=List[RewardSettingModel])
    async def read_rewards(
        config_store: RewardConfigStore = Depends(get_config_store),
    ) -> List[RewardSettingModel]:
        rewards = await config_store.get_rewards()
        return [DataConverter.reward_descriptor_to_model(reward) for reward in rewards]
