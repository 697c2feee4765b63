from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.schema import Column, UniqueConstraint
from sqlalchemy.types import JSON, BigInteger, DateTime, Integer, String, Uuid
from datetime import datetime, timezone
from uuid6 import uuid7


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class RarityRolls(Base):
    """Append-only history of rarity roll tables. The highest version is current."""
    __tablename__ = "rarity_rolls"
    version = Column(Integer, primary_key=True, autoincrement=True)
    common_roll = Column(BigInteger, nullable=False)
    uncommon_roll = Column(BigInteger, nullable=False)
    rare_roll = Column(BigInteger, nullable=False)
    epic_roll = Column(BigInteger, nullable=False)
    legendary_roll = Column(BigInteger, nullable=False)
    max_roll = Column(BigInteger, nullable=False)
    updated_by = Column(String)
    created_at = Column(DateTime(timezone=True), default=utc_now)


class RewardSetting(Base):
    __tablename__ = "reward_settings"
    reward_kind = Column(Integer, primary_key=True)  # RewardKind value
    rarity_tier = Column(Integer, primary_key=True)  # RarityTier value
    min_amount = Column(BigInteger, default=0)
    max_amount = Column(BigInteger, default=0)
    item_pool = Column(JSON, default=list)
    updated_by = Column(String)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class ClaimRecord(Base):
    __tablename__ = "claim_records"
    account = Column(String, primary_key=True, index=True)
    last_claim_at = Column(DateTime(timezone=True), nullable=False)


class ClaimLog(Base):
    """One row per successful claim. Rows are never updated or deleted."""
    __tablename__ = "claim_log"
    claim_id = Column(Uuid, primary_key=True, default=uuid7)
    recipient = Column(String, index=True, nullable=False)
    reward_kind = Column(Integer, nullable=False)
    rarity_tier = Column(Integer, nullable=False)
    payload = Column(BigInteger, nullable=False)
    # entropy, seed, caller and timestamp are enough to replay the draws
    entropy = Column(String, nullable=False)
    unpredictable_seed = Column(String, nullable=False)
    caller = Column(String, nullable=False)
    claimed_at = Column(DateTime(timezone=True), index=True, nullable=False)


class CurrencyBalance(Base):
    __tablename__ = "currency_balances"
    account = Column(String, primary_key=True, index=True)
    balance = Column(BigInteger, default=0, nullable=False)


class ItemBalance(Base):
    __tablename__ = "item_balances"
    account = Column(String, primary_key=True, index=True)
    item_id = Column(BigInteger, primary_key=True)
    balance = Column(BigInteger, default=0, nullable=False)


class LedgerAuthority(Base):
    """Service credentials allowed to mint on a ledger (the game authority)."""
    __tablename__ = "ledger_authorities"
    id = Column(Integer, primary_key=True, autoincrement=True)
    ledger = Column(String, nullable=False)
    credential_name = Column(String, nullable=False)

    __table_args__ = (UniqueConstraint("ledger", "credential_name"),)


class UserTable(Base):
    __tablename__ = "users"
    username = Column(String, primary_key=True, index=True)
    hash_password = Column(String)
    salt = Column(String)
    roles = Column(String, default="")  # comma separated, e.g. "ADMIN"
