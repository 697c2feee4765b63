import os
import tempfile
from datetime import datetime, timedelta, timezone

# Point the service at a throwaway database before any daily_loot module is imported.
_db_dir = tempfile.mkdtemp(prefix="daily_loot_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_db_dir}/api.sqlite3"
os.environ["REDIS_URL"] = ""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from daily_loot.domain.rarity import RarityTier, RewardKind
from daily_loot.models.basic_authentication_models import ADMIN_ROLE, UserModel
from daily_loot.models.schemas import Base
from daily_loot.services.claim_resolver import ClaimResolver
from daily_loot.services.config_store import RewardConfigStore

START = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
DAY = timedelta(hours=24)

CURRENCY_REWARDS = {
    RarityTier.COMMON: (18, 38),
    RarityTier.UNCOMMON: (27, 57),
    RarityTier.RARE: (54, 114),
    RarityTier.EPIC: (126, 226),
}
ITEM_REWARDS = {
    RarityTier.COMMON: [0],
    RarityTier.UNCOMMON: [2],
    RarityTier.RARE: [3],
    RarityTier.EPIC: [4],
}
BOX_ITEM_ID = 1


class FixedClock:
    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class ScriptedRandomness:
    """Returns the scripted roll of each salt, reduced modulo the requested bound."""

    def __init__(self, tier: int = 0, kind: int = 0, payout: int = 0):
        self.rolls = {"tier": tier, "kind": kind, "payout": payout}
        self.calls = []

    def draw(self, entropy, context, salt, bound):
        self.calls.append((entropy, context, salt, bound))
        return self.rolls[salt] % bound


class RecordingPublisher:
    def __init__(self):
        self.events = []

    async def publish(self, event):
        self.events.append(event)

    async def close(self):
        pass


@pytest.fixture
def admin_user():
    return UserModel(username="owner", hash_password="x", salt="y", roles=[ADMIN_ROLE])


@pytest.fixture
def player_user():
    return UserModel(username="player", hash_password="x", salt="y", roles=[])


@pytest.fixture
def clock():
    return FixedClock()


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/loot.sqlite3", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(autocommit=False, class_=AsyncSession, bind=engine)
    await engine.dispose()


@pytest.fixture
def config_store(session_factory):
    return RewardConfigStore(session_factory)


async def seed_rewards(config_store: RewardConfigStore, user_data: UserModel) -> None:
    for tier, (min_amount, max_amount) in CURRENCY_REWARDS.items():
        await config_store.set_reward(user_data, RewardKind.CURRENCY, tier, min_amount, max_amount, [])
    for tier, item_pool in ITEM_REWARDS.items():
        await config_store.set_reward(user_data, RewardKind.ITEM, tier, 1, 1, item_pool)


@pytest_asyncio.fixture
async def seeded_store(config_store, admin_user):
    await seed_rewards(config_store, admin_user)
    return config_store


def build_resolver(session_factory, clock, randomness=None, publisher=None, **kwargs) -> ClaimResolver:
    return ClaimResolver(
        Session=session_factory,
        randomness=randomness,
        clock=clock,
        seed_factory=lambda: "seed",
        publisher=publisher,
        legendary_box_item_id=BOX_ITEM_ID,
        **kwargs,
    )


@pytest_asyncio.fixture
async def resolver(session_factory, seeded_store, clock):
    claim_resolver = build_resolver(session_factory, clock)
    await claim_resolver.grant_game_authority()
    return claim_resolver
