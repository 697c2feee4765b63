import hashlib
import logging
import secrets
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from typing import List

from daily_loot.models.schemas import UserTable, Base
from daily_loot.models.basic_authentication_models import UserModel
from daily_loot.load_secrets import pepper_data

logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def hash_password(password: str, salt: str) -> str:
    return hashlib.sha256((password + salt + pepper_data).encode()).hexdigest()


class CreateAuthentication:

    @staticmethod
    async def create_table(engine: AsyncEngine) -> None:
        """Create table if not exists"""
        try:
            async with engine.begin() as conn:
                # テーブル作成 (既存テーブルがある場合はスキップされる)
                await conn.run_sync(Base.metadata.create_all)
        except IntegrityError as e:
            logging.warning(f"Table already exists or other integrity error: {e}")

    @staticmethod
    async def create_user_data(username: str, password: str, roles: List[str], session: AsyncSession) -> UserModel:
        """Create user data to authenticate the user

        Args:
            username (str): Login name
            password (str): Plain password, only its salted hash is stored
            roles (List[str]): Capabilities of the user, e.g. ["ADMIN"]

        Returns:
            UserModel: The stored user
        """
        salt = secrets.token_hex(8)
        hashed_password = hash_password(password, salt)
        user = UserTable(
            username=username,
            hash_password=hashed_password,
            salt=salt,
            roles=",".join(roles),
        )
        async with session.begin():
            session.add(user)
        return UserModel(username=username, hash_password=hashed_password, salt=salt, roles=list(roles))


class ReadAuthentication:
    @staticmethod
    async def read_user_data(username: str, session: AsyncSession) -> UserModel | None:
        """Read user data to get salt, password hash and roles

        Args:
            username (str): username of the user

        Returns:
            UserModel | None: username, password hash, salt and roles
        """
        stmt = select(UserTable).where(UserTable.username == username)
        result = await session.execute(stmt)
        result = result.scalars().first()
        if result is None:
            logging.warning(f"User not found: {username}")
            return None
        return UserModel(
            username=result.username,
            hash_password=result.hash_password,
            salt=result.salt,
            roles=[role for role in (result.roles or "").split(",") if role],
        )
