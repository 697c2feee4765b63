from fastapi import Depends, status, HTTPException
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlalchemy.ext.asyncio import async_sessionmaker
import secrets
import logging

from daily_loot.authentication.basic_authentication_crud import ReadAuthentication, hash_password
from daily_loot.db import Session
from daily_loot.exceptions import Unauthorized
from daily_loot.models.basic_authentication_models import ADMIN_ROLE, UserModel

security = HTTPBasic()
read_auth = ReadAuthentication()


def ensure_admin(user_data: UserModel | None) -> None:
    """Raise Unauthorized unless the user holds the administrative capability

    Args:
        user_data (UserModel | None): Authenticated user
    """
    if user_data is None or not user_data.has_role(ADMIN_ROLE):
        username = user_data.username if user_data is not None else "anonymous"
        raise Unauthorized(f"account {username} is missing role {ADMIN_ROLE}")


class BasicAuthentication:
    def __init__(self, Session: async_sessionmaker = Session):
        self.Session = Session

    async def check_user_data(
        self, credentials: HTTPBasicCredentials = Depends(security)
    ) -> UserModel:
        """Check if the user data is valid

        Args:
            credentials (HTTPBasicCredentials, optional): Username and password of the request. Defaults to Depends(security).

        Raises:
            HTTPException: The user data is not found in the database
            HTTPException: The password is incorrect

        Returns:
            UserModel: The authenticated user
        """
        async with self.Session() as session:
            user_data: UserModel = await read_auth.read_user_data(credentials.username, session)
        if user_data is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid username",
                headers={"WWW-Authenticate": "Basic"},
            )

        hashed_password = hash_password(credentials.password, user_data.salt)
        if not secrets.compare_digest(hashed_password, user_data.hash_password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid password",
                headers={"WWW-Authenticate": "Basic"},
            )
        return user_data


basic_auth = BasicAuthentication()


async def require_admin(user_data: UserModel = Depends(basic_auth.check_user_data)) -> UserModel:
    """FastAPI dependency that only lets administrators through"""
    try:
        ensure_admin(user_data)
    except Unauthorized as e:
        logging.warning(e.message)
        raise HTTPException(
            status_code=e.status_code,
            detail={"error": e.code, "message": e.message},
        )
    return user_data
