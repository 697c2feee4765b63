"""Claim cooldown rules. ``now`` is always passed in by the caller."""

from datetime import datetime, timedelta, timezone

CLAIM_COOLDOWN = timedelta(hours=24)


def as_utc(moment: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from databases without tz support."""
    if moment is None:
        return None
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def can_claim(last_claim_at: datetime | None, now: datetime, cooldown: timedelta = CLAIM_COOLDOWN) -> bool:
    """Return True if the account has never claimed or the cooldown has elapsed."""
    if last_claim_at is None:
        return True
    return as_utc(now) - as_utc(last_claim_at) >= cooldown


def next_claim_at(last_claim_at: datetime | None, cooldown: timedelta = CLAIM_COOLDOWN) -> datetime | None:
    if last_claim_at is None:
        return None
    return as_utc(last_claim_at) + cooldown
