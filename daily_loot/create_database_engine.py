from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from daily_loot.load_secrets import database_url


def build_engine(url: str = database_url):
    """Create the async engine for the given database url.

    SQLite connections are not pooled so that an engine can be shared by
    several event loops (uvicorn workers, test clients).
    """
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=False, poolclass=NullPool)
    return create_async_engine(url, pool_size=20, max_overflow=20)


engine = build_engine()
