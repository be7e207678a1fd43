"""SQLAlchemy-backed key-value store with async support."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import Column, DateTime, LargeBinary, String
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool, StaticPool

from pingwatch.storage.base import KeyValueStore
from pingwatch.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_URL = "sqlite+aiosqlite:///./data/pingwatch.db"


class Base(DeclarativeBase):
    pass


class KeyValueEntry(Base):
    """
    One stored record.

    Attributes:
        key: Record name
        value: Opaque payload
        updated_at: Timestamp of the last write
    """

    __tablename__ = "kv_entries"

    key = Column(String(255), primary_key=True)
    value = Column(LargeBinary, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<KeyValueEntry(key='{self.key}', size={len(self.value or b'')})>"


def create_engine_for_url(url: str) -> AsyncEngine:
    """
    Create an async engine with a pool suited to the database.

    In-memory SQLite shares one connection (StaticPool) so every session sees
    the same database. File SQLite opens connections on demand (NullPool).
    """
    if url.startswith("sqlite"):
        database = make_url(url).database
        if not database or database == ":memory:":
            return create_async_engine(
                url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool
            )
        Path(database).parent.mkdir(parents=True, exist_ok=True)
        return create_async_engine(url, poolclass=NullPool)

    return create_async_engine(url, pool_pre_ping=True)


class SqlKeyValueStore(KeyValueStore):
    """
    Key-value store on a single SQL table.

    Example:
        ```python
        store = SqlKeyValueStore("sqlite+aiosqlite:///./data/pingwatch.db")
        await store.init()
        await store.save("pingwatch_endpoints", b"[]")
        data = await store.load("pingwatch_endpoints")
        await store.close()
        ```
    """

    def __init__(self, url: str = DEFAULT_URL, engine: Optional[AsyncEngine] = None):
        """
        Initialize store.

        Args:
            url: SQLAlchemy async database URL
            engine: Existing engine (not disposed by close())
        """
        self.url = url
        self._owns_engine = engine is None
        self.engine = engine or create_engine_for_url(url)
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def init(self) -> None:
        """Create the table if it does not exist."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)
        logger.info("Key-value table ready", extra={"url": self.url})

    async def load(self, key: str) -> Optional[bytes]:
        async with self.session_maker() as session:
            entry = await session.get(KeyValueEntry, key)
            return bytes(entry.value) if entry is not None else None

    async def save(self, key: str, data: bytes) -> None:
        async with self.session_maker() as session:
            try:
                entry = await session.get(KeyValueEntry, key)
                now = datetime.now(timezone.utc)
                if entry is None:
                    session.add(KeyValueEntry(key=key, value=data, updated_at=now))
                else:
                    entry.value = data
                    entry.updated_at = now
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        logger.debug("Saved record", extra={"key": key, "size": len(data)})

    async def close(self) -> None:
        if self._owns_engine:
            await self.engine.dispose()
