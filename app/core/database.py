"""
Database module

SQLAlchemy 2.0 async engine behind a lifecycle-managed `Database` handle.
The handle is created once per process (see `app.main.create_app`) and
shared by reference; request handlers receive sessions through `get_db`.
"""
import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, AsyncIterator, Optional

from fastapi import Request
from loguru import logger
from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    AsyncSessionTransaction,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from .exceptions import TransactionConflictException


class Database:
    """
    Lazily connected database handle

    `connect()` may be awaited from many places at once: the first caller
    schedules the connection attempt and every concurrent caller awaits the
    same attempt. A failed attempt is forgotten so the next call retries.
    """

    def __init__(self, url: str, *, echo: bool = False, create_tables: bool = False):
        self.url = url
        self.echo = echo
        self.create_tables = create_tables
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None
        self._pending: Optional[asyncio.Future] = None

    @property
    def is_connected(self) -> bool:
        return self.engine is not None

    async def connect(self) -> "Database":
        """Return the connected handle, opening the engine on first use"""
        if self.engine is not None:
            return self

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._open())
        pending = self._pending

        try:
            await asyncio.shield(pending)
        except Exception:
            if self._pending is pending:
                self._pending = None
            raise
        return self

    async def _open(self) -> None:
        self._ensure_sqlite_dir()
        logger.info("Connecting to database...")

        engine = create_async_engine(self.url, echo=self.echo, future=True)
        if make_url(self.url).get_backend_name() == "sqlite":
            event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        try:
            async with engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
                if self.create_tables:
                    await conn.run_sync(_metadata().create_all)
        except Exception as e:
            await engine.dispose()
            logger.error(f"Database connection failed: {e}")
            raise

        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(f"Database connected: {make_url(self.url).render_as_string(hide_password=True)}")

    def _ensure_sqlite_dir(self) -> None:
        url = make_url(self.url)
        if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    async def disconnect(self) -> None:
        """Dispose the engine; a later `connect()` opens a new one"""
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("Database disconnected")
        self.engine = None
        self.session_factory = None
        self._pending = None

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a session on the connected engine"""
        await self.connect()
        async with self.session_factory() as session:
            yield session


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # sqlite leaves foreign key enforcement off per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _metadata():
    # table classes register themselves on import
    import app.models  # noqa: F401
    return SQLModel.metadata


class UnitOfWork:
    """
    Explicit transaction boundary

    Usage:
        async with UnitOfWork(db) as uow:
            ...                      # commit on success
        # any exception rolls everything back

    A read transaction already opened by earlier queries on the session is
    closed first so the unit of work owns a fresh transaction. Operational
    errors (locked database, serialization failures) are re-raised as
    `TransactionConflictException` so the client is told to retry.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self._transaction: Optional[AsyncSessionTransaction] = None

    async def begin(self) -> "UnitOfWork":
        if self.session.in_transaction():
            await self.session.commit()
        self._transaction = await self.session.begin()
        return self

    async def commit(self) -> None:
        await self._transaction.commit()

    async def abort(self) -> None:
        # session level rollback also clears a transaction broken by a failed flush
        await self.session.rollback()

    async def __aenter__(self) -> "UnitOfWork":
        return await self.begin()

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            try:
                await self.commit()
            except OperationalError as e:
                await self.abort()
                logger.warning(f"Transaction commit conflict: {e}")
                raise TransactionConflictException() from e
            except Exception:
                await self.abort()
                raise
            return False

        await self.abort()
        if isinstance(exc, OperationalError):
            logger.warning(f"Transaction aborted by write conflict: {exc}")
            raise TransactionConflictException() from exc
        return False


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Session dependency

    Usage:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
