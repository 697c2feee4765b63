import asyncio
from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import BOX_ITEM_ID, DAY, START, RecordingPublisher, ScriptedRandomness, build_resolver
from daily_loot.crud import ReadData
from daily_loot.exceptions import ClaimTooSoon, InvalidRecipient, LedgerError, RewardNotConfigured, Unauthorized
from daily_loot.ledgers import CurrencyLedger
from daily_loot.models.dc_models import RarityTierModel, RewardKindModel
from daily_loot.services.distribution_report import DistributionReport


async def currency_balance(claim_resolver, account):
    async with claim_resolver.Session() as session:
        return await claim_resolver.currency_ledger.balance_of(account, session)


async def item_balance(claim_resolver, account, item_id):
    async with claim_resolver.Session() as session:
        return await claim_resolver.item_ledger.balance_of(account, item_id, session)


async def authorized_resolver(session_factory, clock, **kwargs):
    claim_resolver = build_resolver(session_factory, clock, **kwargs)
    await claim_resolver.grant_game_authority()
    return claim_resolver


@pytest.mark.asyncio
async def test_first_claim_pays_and_starts_cooldown(resolver):
    event = await resolver.claim("alice", 1)

    assert event.recipient == "alice"
    assert event.claimed_at == START
    assert event.next_claim_at == START + DAY

    if event.reward_kind == RewardKindModel.currency:
        assert await currency_balance(resolver, "alice") == event.payload
    else:
        assert await item_balance(resolver, "alice", event.payload) == 1

    status = await resolver.claim_status("alice")
    assert status.last_claim_at == START
    assert status.next_claim_at == START + DAY
    assert not status.can_claim


@pytest.mark.asyncio
async def test_claim_once_per_day(resolver, clock):
    await resolver.claim("alice", 1)

    clock.advance(DAY - timedelta(seconds=1))
    with pytest.raises(ClaimTooSoon) as excinfo:
        await resolver.claim("alice", 2)
    assert excinfo.value.message == "You can claim once per day"
    assert excinfo.value.next_claim_at == START + DAY

    clock.advance(timedelta(seconds=1))
    event = await resolver.claim("alice", 3)
    assert event.claimed_at == START + DAY
    assert len(await resolver.claim_log(recipient="alice")) == 2


@pytest.mark.asyncio
async def test_cooldown_is_per_account(resolver):
    await resolver.claim("alice", 1)
    event = await resolver.claim("bob", 1)
    assert event.recipient == "bob"


@pytest.mark.asyncio
@pytest.mark.parametrize("recipient", ["", "0x0", "0x0000000000000000000000000000000000000000", None])
async def test_zero_recipient_is_rejected(resolver, recipient):
    with pytest.raises(InvalidRecipient):
        await resolver.claim(recipient, 1)
    assert await resolver.claim_log() == []


@pytest.mark.asyncio
async def test_common_currency_payout(session_factory, seeded_store, clock):
    low = await authorized_resolver(session_factory, clock, randomness=ScriptedRandomness(tier=0, kind=0, payout=0))
    event = await low.claim("alice", 1)
    assert event.rarity_tier == RarityTierModel.common
    assert event.reward_kind == RewardKindModel.currency
    assert event.payload == 18
    assert await currency_balance(low, "alice") == 18

    high = build_resolver(session_factory, clock, randomness=ScriptedRandomness(tier=0, kind=0, payout=2**64 - 1))
    event = await high.claim("bob", 1)
    assert event.payload == 38


@pytest.mark.asyncio
async def test_item_payout_mints_one_item(session_factory, seeded_store, clock):
    claim_resolver = await authorized_resolver(
        session_factory, clock, randomness=ScriptedRandomness(tier=70, kind=1, payout=5)
    )
    event = await claim_resolver.claim("alice", 1)
    assert event.rarity_tier == RarityTierModel.uncommon
    assert event.reward_kind == RewardKindModel.item
    assert event.payload == 2
    assert await item_balance(claim_resolver, "alice", 2) == 1
    assert await currency_balance(claim_resolver, "alice") == 0


@pytest.mark.asyncio
async def test_legendary_mints_box_item(session_factory, seeded_store, clock):
    claim_resolver = await authorized_resolver(
        session_factory, clock, randomness=ScriptedRandomness(tier=99, kind=0, payout=0)
    )
    event = await claim_resolver.claim("alice", 1)
    assert event.rarity_tier == RarityTierModel.legendary
    assert event.reward_kind == RewardKindModel.item
    assert event.payload == BOX_ITEM_ID
    assert await item_balance(claim_resolver, "alice", BOX_ITEM_ID) == 1


@pytest.mark.asyncio
async def test_configured_rarity_rolls_are_used(session_factory, seeded_store, admin_user, clock):
    await seeded_store.set_rarity_rolls(admin_user, 0, 1, 2, 3, 4, 5)
    randomness = ScriptedRandomness(tier=3, kind=0, payout=0)
    claim_resolver = await authorized_resolver(session_factory, clock, randomness=randomness)

    event = await claim_resolver.claim("alice", 1)
    assert event.rarity_tier == RarityTierModel.epic
    assert event.payload == 126
    assert randomness.calls[0][3] == 5


@pytest.mark.asyncio
async def test_missing_authority_rolls_back_claim(session_factory, seeded_store, clock):
    claim_resolver = build_resolver(session_factory, clock)

    with pytest.raises(Unauthorized):
        await claim_resolver.claim("alice", 1)

    status = await claim_resolver.claim_status("alice")
    assert status.last_claim_at is None
    assert status.can_claim
    assert await claim_resolver.claim_log() == []


@pytest.mark.asyncio
async def test_missing_reward_rolls_back_claim(session_factory, clock):
    claim_resolver = await authorized_resolver(
        session_factory, clock, randomness=ScriptedRandomness(tier=0, kind=0, payout=0)
    )

    with pytest.raises(RewardNotConfigured):
        await claim_resolver.claim("alice", 1)

    assert (await claim_resolver.claim_status("alice")).can_claim
    assert await currency_balance(claim_resolver, "alice") == 0


@pytest.mark.asyncio
async def test_concurrent_claims_of_one_account(resolver):
    results = await asyncio.gather(
        resolver.claim("alice", 1),
        resolver.claim("alice", 2),
        return_exceptions=True,
    )
    errors = [result for result in results if isinstance(result, Exception)]
    assert len(errors) == 1
    assert isinstance(errors[0], ClaimTooSoon)
    assert len(await resolver.claim_log(recipient="alice")) == 1
    assert resolver.lock_manager.active_accounts() == 0


@pytest.mark.asyncio
async def test_claim_log_is_newest_first(resolver, clock):
    await resolver.claim("alice", 1)
    clock.advance(timedelta(minutes=1))
    await resolver.claim("bob", 1)

    claim_log = await resolver.claim_log()
    assert [event.recipient for event in claim_log] == ["bob", "alice"]
    assert [event.recipient for event in await resolver.claim_log(limit=1)] == ["bob"]
    assert [event.recipient for event in await resolver.claim_log(recipient="alice")] == ["alice"]


@pytest.mark.asyncio
async def test_committed_claims_are_published(session_factory, seeded_store, clock):
    publisher = RecordingPublisher()
    claim_resolver = await authorized_resolver(session_factory, clock, publisher=publisher)

    event = await claim_resolver.claim("alice", 1)
    with pytest.raises(ClaimTooSoon):
        await claim_resolver.claim("alice", 2)

    assert publisher.events == [event]


@pytest.mark.asyncio
async def test_distribution_report_counts_claims(resolver, session_factory, clock):
    for account in ["alice", "bob", "carol"]:
        await resolver.claim(account, 1)

    report = await DistributionReport(session_factory).build(START - timedelta(hours=1))
    assert report.claims == 3
    assert sum(report.practical_tiers.values()) == pytest.approx(1.0)
    assert report.theoretical_tiers["COMMON"] == 0.6

    empty = await DistributionReport(session_factory).build(START + timedelta(hours=1))
    assert empty.claims == 0


class ConflictingCurrencyLedger(CurrencyLedger):
    """Fails like a balance row inserted by another process first."""

    async def credit_privileged(self, account, amount, credential, session):
        raise IntegrityError(
            "INSERT INTO currency_balances", {}, Exception("UNIQUE constraint failed: currency_balances.account")
        )


@pytest.mark.asyncio
async def test_ledger_conflict_is_a_ledger_error(session_factory, seeded_store, clock):
    claim_resolver = await authorized_resolver(
        session_factory,
        clock,
        randomness=ScriptedRandomness(tier=0, kind=0, payout=0),
        currency_ledger=ConflictingCurrencyLedger(),
    )

    with pytest.raises(LedgerError) as excinfo:
        await claim_resolver.claim("alice", 1)
    assert "currency ledger" in excinfo.value.message

    assert (await claim_resolver.claim_status("alice")).can_claim
    assert await claim_resolver.claim_log() == []


@pytest.mark.asyncio
async def test_claim_record_conflict_is_claim_too_soon(resolver, monkeypatch):
    await resolver.claim("alice", 1)

    # another process committed the first claim record after this one read it
    async def read_nothing(account, session):
        return None

    monkeypatch.setattr(ReadData, "read_claim_record_for_update", staticmethod(read_nothing))

    with pytest.raises(ClaimTooSoon) as excinfo:
        await resolver.claim("alice", 2)
    assert excinfo.value.next_claim_at == START + DAY
    assert len(await resolver.claim_log(recipient="alice")) == 1
