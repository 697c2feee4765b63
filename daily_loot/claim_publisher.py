import logging
from redis.asyncio import Redis
from redis.exceptions import RedisError

from daily_loot.load_secrets import claim_channel, redis_url
from daily_loot.models.dc_models import ClaimEventModel


class ClaimPublisher:
    """Publishes committed claim events to a Redis channel for off-line observers."""

    def __init__(self, redis: Redis, channel: str = claim_channel):
        self.redis = redis
        self.channel = channel

    async def publish(self, event: ClaimEventModel) -> None:
        """Publish the claim event as JSON

        A failed publish is only logged: the claim is already committed.

        Args:
            event (ClaimEventModel): Committed claim
        """
        payload = event.model_dump_json()
        try:
            await self.redis.publish(self.channel, payload)
            logging.debug(f"Published claim {event.claim_id} to {self.channel}")
        except RedisError as e:
            logging.error(f"Failed to publish claim {event.claim_id}: {e}")

    async def close(self) -> None:
        await self.redis.aclose()


def create_claim_publisher(url: str = redis_url) -> ClaimPublisher | None:
    """Create the publisher, or None when no Redis url is configured"""
    if not url:
        return None
    redis = Redis.from_url(url, decode_responses=True, health_check_interval=30)
    return ClaimPublisher(redis)
