from collections.abc import AsyncGenerator, Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config.settings import settings
from src.pm_common.errors import InternalError

engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=10,
    max_overflow=5,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an AsyncSession, auto-closes after request.

    Services own commit/rollback; nothing is committed here.
    """
    async with async_session_factory() as session:
        yield session


_current_session: ContextVar[AsyncSession | None] = ContextVar(
    "pm_current_session", default=None
)


@contextmanager
def session_scope(db: AsyncSession) -> Iterator[AsyncSession]:
    """Expose `db` to collaborators that cannot take it as an argument.

    The binding is per asyncio task, so concurrent requests never see each
    other's session.
    """
    token = _current_session.set(db)
    try:
        yield db
    finally:
        _current_session.reset(token)


def current_session() -> AsyncSession:
    db = _current_session.get()
    if db is None:
        raise InternalError("No database session bound; wrap the call in session_scope()")
    return db
