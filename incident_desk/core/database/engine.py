"""
Async engine, session factory and schema helpers.

DATABASE_URL selects the backend. SQLite through aiosqlite is the default;
a postgresql+asyncpg URL works once asyncpg is installed.
"""
from collections.abc import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from incident_desk.core import config
from incident_desk.utils import get_logger


log = get_logger(__name__)

_is_sqlite = config.SQLALCHEMY_DATABASE_URL.startswith("sqlite")

# SQLite connections must not outlive the event loop that opened them
engine = create_async_engine(
    config.SQLALCHEMY_DATABASE_URL,
    poolclass=NullPool if _is_sqlite else None,
    echo=False,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session. Commits when the route returns, rolls back if
    it raises.

    Usage:
        @router.get("/{team_id}/incidents")
        async def list_incidents(db: Annotated[AsyncSession, Depends(get_db)]):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def _metadata():
    from incident_desk.core.database.base import Base

    # Every model module must be imported before the metadata is complete
    from incident_desk.features.users.models import User  # noqa: F401
    from incident_desk.features.teams.models import Team, TeamMembership, PlatformManager  # noqa: F401
    from incident_desk.features.incidents.models import Incident  # noqa: F401

    return Base.metadata


async def init_db():
    """Create any missing tables. Run at application startup."""
    metadata = _metadata()
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    log.debug(f"Schema ready: {sorted(metadata.tables)}")


async def drop_db():
    """Drop every table. Only the test suite calls this."""
    metadata = _metadata()
    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
