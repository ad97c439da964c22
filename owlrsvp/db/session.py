from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import declarative_base
from owlrsvp.core.config import settings

pool_options = {}
# SQLite (local runs, tests) may be handed a pool without sizing options
if not settings.DATABASE_URL.startswith("sqlite"):
    pool_options = {
        "pool_size": 20,           # Number of permanent connections to maintain
        "max_overflow": 10,        # Maximum number of connections to allow beyond pool_size
        "pool_recycle": 3600,      # Recycle connections after 1 hour (3600 seconds)
    }

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_pre_ping=True,            # Verify connections before using them
    **pool_options,
)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
Base = declarative_base()

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
