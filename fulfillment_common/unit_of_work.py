from contextlib import asynccontextmanager
from typing import AsyncIterator, Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


class Transaction:
    """Repositories sharing one session; nothing persists without commit()."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def commit(self):
        await self._session.commit()

    async def rollback(self):
        await self._session.rollback()


T = TypeVar("T", bound=Transaction)


class BaseUnitOfWork(Generic[T]):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    def _begin(self, session: AsyncSession) -> T:
        raise NotImplementedError

    @asynccontextmanager
    async def __call__(self) -> AsyncIterator[T]:
        async with self._session_factory() as session:
            try:
                yield self._begin(session)
            finally:
                # Discards whatever was not committed, also on error.
                await session.rollback()
