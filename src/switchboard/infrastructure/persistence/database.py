"""SQLite engine and session lifecycle."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

# registers conversation_contexts with SQLModel.metadata
from switchboard.infrastructure.persistence import models as _models  # noqa: F401

logger = logging.getLogger(__name__)

MEMORY_DATABASE = ":memory:"


def build_database_url(database_path: str) -> str:
    """aiosqlite 用の接続 URL を組み立てる

    ファイルパスの場合は親ディレクトリを作成する。
    """
    if database_path == MEMORY_DATABASE:
        return f"sqlite+aiosqlite:///{MEMORY_DATABASE}"
    Path(database_path).parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite+aiosqlite:///{database_path}"


class DatabaseManager:
    """Owns the async engine for the conversation context store.

    The engine is created on first use and disposed by ``close()``;
    a closed manager builds a fresh engine the next time it is used.
    ``get_session`` is the session factory handed to repositories.
    """

    def __init__(self, database_path: str) -> None:
        """
        Args:
            database_path: SQLite ファイルのパス、または ":memory:"
        """
        self._database_path = database_path
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    def get_engine(self) -> AsyncEngine:
        """Return the engine, creating it on first call."""
        if self._engine is None:
            url = build_database_url(self._database_path)
            self._engine = create_async_engine(url)
            self._sessions = async_sessionmaker(
                self._engine, class_=AsyncSession, expire_on_commit=False
            )
            logger.debug("Opened database engine: %s", url)
        return self._engine

    async def create_tables(self) -> None:
        """Create missing tables. Existing tables are left as they are."""
        async with self.get_engine().begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """セッションを開き、ブロック終了時に閉じる"""
        self.get_engine()
        assert self._sessions is not None
        async with self._sessions() as session:
            yield session

    async def is_healthy(self) -> bool:
        """Run a trivial query; False when the database cannot be reached."""
        try:
            async with self.get_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.warning("Database health check failed: %s", e)
            return False
        return True

    async def close(self) -> None:
        """エンジンを破棄する"""
        engine, self._engine, self._sessions = self._engine, None, None
        if engine is not None:
            await engine.dispose()
