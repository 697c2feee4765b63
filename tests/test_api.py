import asyncio

import pytest
from fastapi.testclient import TestClient

from conftest import DAY, build_resolver, seed_rewards
from daily_loot.authentication.basic_authentication_crud import CreateAuthentication
from daily_loot.create_database_engine import engine
from daily_loot.db import Session
from daily_loot.dependencies import get_claim_resolver
from daily_loot.main import app
from daily_loot.models.basic_authentication_models import ADMIN_ROLE
from daily_loot.models.schemas import Base
from daily_loot.services.config_store import RewardConfigStore

ADMIN = ("owner", "owner-password")
PLAYER = ("player", "player-password")


async def prepare_database(claim_resolver):
    await CreateAuthentication.create_table(engine)
    async with Session() as session:
        admin_user = await CreateAuthentication.create_user_data(ADMIN[0], ADMIN[1], [ADMIN_ROLE], session)
    async with Session() as session:
        await CreateAuthentication.create_user_data(PLAYER[0], PLAYER[1], [], session)
    await seed_rewards(RewardConfigStore(Session), admin_user)
    await claim_resolver.grant_game_authority()


async def reset_database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def client(clock):
    claim_resolver = build_resolver(Session, clock)
    asyncio.run(prepare_database(claim_resolver))
    app.dependency_overrides[get_claim_resolver] = lambda: claim_resolver
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    asyncio.run(reset_database())


def test_read_default_rarity_rolls(client):
    response = client.get("/rarity-rolls")
    assert response.status_code == 200
    assert response.json() == {
        "common": 0,
        "uncommon": 60,
        "rare": 80,
        "epic": 90,
        "legendary": 98,
        "max_roll": 100,
        "version": None,
    }


def test_admin_sets_rarity_rolls(client):
    response = client.post(
        "/admin/rarity-rolls",
        json={"common": 0, "uncommon": 1, "rare": 2, "epic": 3, "legendary": 4, "max_roll": 5},
        auth=ADMIN,
    )
    assert response.status_code == 200
    assert response.json()["version"] is not None

    assert client.get("/rarity-rolls").json()["max_roll"] == 5


def test_rarity_rolls_require_credentials(client):
    body = {"common": 0, "uncommon": 1, "rare": 2, "epic": 3, "legendary": 4, "max_roll": 5}
    assert client.post("/admin/rarity-rolls", json=body).status_code == 401
    assert client.post("/admin/rarity-rolls", json=body, auth=(ADMIN[0], "wrong")).status_code == 401

    response = client.post("/admin/rarity-rolls", json=body, auth=PLAYER)
    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "unauthorized"


def test_bad_rarity_rolls_are_rejected(client):
    response = client.post(
        "/admin/rarity-rolls",
        json={"common": 0, "uncommon": 2, "rare": 1, "epic": 3, "legendary": 4, "max_roll": 5},
        auth=ADMIN,
    )
    assert response.status_code == 422
    assert response.json()["detail"] == {
        "error": "invalid_ordering",
        "message": "Uncommon must be less rare than rare",
    }
    assert client.get("/rarity-rolls").json()["version"] is None


def test_admin_sets_reward(client):
    response = client.put("/admin/rewards/currency/rare", json={"min_amount": 60, "max_amount": 70}, auth=ADMIN)
    assert response.status_code == 200
    assert response.json() == {
        "reward_kind": "currency",
        "rarity_tier": "rare",
        "min_amount": 60,
        "max_amount": 70,
        "item_pool": [],
    }

    rewards = client.get("/rewards").json()
    assert len(rewards) == 8
    [rare] = [r for r in rewards if r["reward_kind"] == "currency" and r["rarity_tier"] == "rare"]
    assert rare["max_amount"] == 70


def test_bad_rewards_are_rejected(client):
    response = client.put("/admin/rewards/currency/common", json={"min_amount": 38, "max_amount": 18}, auth=ADMIN)
    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "invalid_range"

    response = client.put("/admin/rewards/item/common", json={"item_pool": []}, auth=ADMIN)
    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "invalid_item_pool"

    assert client.put("/admin/rewards/gems/common", json={}, auth=ADMIN).status_code == 422
    assert client.put("/admin/rewards/item/mythic", json={"item_pool": [1]}, auth=ADMIN).status_code == 422
    assert client.put("/admin/rewards/item/common", json={"item_pool": [1]}, auth=PLAYER).status_code == 403


def test_claim_then_claim_too_soon(client):
    response = client.post("/claim", json={"recipient": "alice", "entropy": 12345})
    assert response.status_code == 200
    event = response.json()
    assert event["recipient"] == "alice"
    assert event["reward_kind"] in ("currency", "item")

    response = client.post("/claim", json={"recipient": "alice", "entropy": 1})
    assert response.status_code == 429
    assert response.headers["Retry-After"] == "86400"
    assert response.json()["detail"] == {"error": "claim_too_soon", "message": "You can claim once per day"}


def test_claim_after_a_day(client, clock):
    assert client.post("/claim", json={"recipient": "alice", "entropy": 1}).status_code == 200
    clock.advance(DAY)
    assert client.post("/claim", json={"recipient": "alice", "entropy": 2}).status_code == 200


def test_claim_rejects_bad_requests(client):
    response = client.post("/claim", json={"recipient": "0x0000000000000000000000000000000000000000", "entropy": 1})
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "invalid_recipient"

    assert client.post("/claim", json={"recipient": "alice", "entropy": -1}).status_code == 422
    assert client.post("/claim", json={"entropy": 1}).status_code == 422


def test_claim_status_and_log(client):
    status = client.get("/claims/alice").json()
    assert status["can_claim"] is True
    assert status["last_claim_at"] is None

    client.post("/claim", json={"recipient": "alice", "entropy": 1})

    status = client.get("/claims/alice").json()
    assert status["can_claim"] is False
    assert status["next_claim_at"] is not None

    claim_log = client.get("/claims", params={"recipient": "alice"}).json()
    assert len(claim_log) == 1
    assert claim_log[0]["recipient"] == "alice"
    assert client.get("/claims", params={"limit": 0}).status_code == 422


def test_distribution_endpoint(client):
    client.post("/claim", json={"recipient": "alice", "entropy": 1})

    # claims are stamped with the fixed clock, far in the past
    report = client.get("/claims/distribution", params={"hours": 1_000_000}).json()
    assert report["claims"] == 1
    assert set(report["theoretical_tiers"]) == {"COMMON", "UNCOMMON", "RARE", "EPIC", "LEGENDARY"}
    assert report["theoretical_kinds"] == {"CURRENCY": 0.49, "ITEM": 0.51}

    assert client.get("/claims/distribution").json()["claims"] == 0


def test_rewards_beyond_64_bits_are_rejected(client):
    response = client.put(
        "/admin/rewards/currency/common",
        json={"min_amount": 18 * 10**18, "max_amount": 38 * 10**18},
        auth=ADMIN,
    )
    assert response.status_code == 422

    response = client.put("/admin/rewards/item/common", json={"item_pool": [2**63]}, auth=ADMIN)
    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "invalid_item_pool"

    response = client.post(
        "/admin/rarity-rolls",
        json={"common": 0, "uncommon": 1, "rare": 2, "epic": 3, "legendary": 4, "max_roll": 2**63},
        auth=ADMIN,
    )
    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "invalid_ordering"
