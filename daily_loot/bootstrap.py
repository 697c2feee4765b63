import argparse
import asyncio
import logging
import sys

from sqlalchemy.ext.asyncio import async_sessionmaker

from daily_loot.authentication.basic_authentication_crud import CreateAuthentication, ReadAuthentication
from daily_loot.create_database_engine import engine
from daily_loot.db import Session
from daily_loot.domain.rarity import DEFAULT_RARITY_ROLLS, RarityTier, RewardKind
from daily_loot.models.basic_authentication_models import ADMIN_ROLE, UserModel
from daily_loot.services.claim_resolver import ClaimResolver
from daily_loot.services.config_store import RewardConfigStore

logging.basicConfig(level=logging.INFO)

# (min_amount, max_amount) of the currency reward per tier
DEFAULT_CURRENCY_REWARDS = {
    RarityTier.COMMON: (18, 38),
    RarityTier.UNCOMMON: (27, 57),
    RarityTier.RARE: (54, 114),
    RarityTier.EPIC: (126, 226),
}
# item pool per tier; Legendary pays the box item
DEFAULT_ITEM_REWARDS = {
    RarityTier.COMMON: [0],
    RarityTier.UNCOMMON: [2],
    RarityTier.RARE: [3],
    RarityTier.EPIC: [4],
}


async def seed_default_config(config_store: RewardConfigStore, user_data: UserModel) -> None:
    """Store the default rarity rolls and reward table"""
    await config_store.set_rarity_rolls(user_data, *DEFAULT_RARITY_ROLLS.as_tuple())
    for tier, (min_amount, max_amount) in DEFAULT_CURRENCY_REWARDS.items():
        await config_store.set_reward(user_data, RewardKind.CURRENCY, tier, min_amount, max_amount, [])
    for tier, item_pool in DEFAULT_ITEM_REWARDS.items():
        await config_store.set_reward(user_data, RewardKind.ITEM, tier, 0, 0, item_pool)


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Bootstrap the daily loot service")
    parser.add_argument("--username", type=str, help="Administrator username", required=True)
    parser.add_argument("--password", type=str, help="Administrator password", required=True)
    parser.add_argument("--seed-defaults", action="store_true", help="Store the default rarity rolls and rewards")
    return parser


async def bootstrap(
    username: str, password: str, seed_defaults: bool, Session: async_sessionmaker = Session
) -> bool:
    """Create the administrator, grant the game authority and optionally seed the defaults

    Args:
        username (str): Administrator username
        password (str): Password of a new administrator, an existing user keeps its password
        seed_defaults (bool): Store the default rarity rolls and rewards

    Returns:
        bool: False if the existing user is not an administrator, nothing is changed then
    """
    async with Session() as session:
        user_data = await ReadAuthentication.read_user_data(username, session)
    if user_data is None:
        async with Session() as session:
            user_data = await CreateAuthentication.create_user_data(username, password, [ADMIN_ROLE], session)
        logging.info(f"Created administrator {username}")
    elif not user_data.has_role(ADMIN_ROLE):
        logging.error(f"User {username} already exists without role {ADMIN_ROLE}; choose another username")
        return False
    else:
        logging.warning(f"Administrator {username} already exists, --password is not applied")

    # the engine mints on both ledgers with its own credential
    await ClaimResolver(Session=Session).grant_game_authority()

    if seed_defaults:
        await seed_default_config(RewardConfigStore(Session), user_data)
        logging.info("Seeded default rarity rolls and rewards")
    return True


async def main(username: str, password: str, seed_defaults: bool) -> bool:
    await CreateAuthentication.create_table(engine)
    try:
        return await bootstrap(username, password, seed_defaults)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = get_parser()
    args = parser.parse_args()
    if not asyncio.run(main(args.username, args.password, args.seed_defaults)):
        sys.exit(1)
