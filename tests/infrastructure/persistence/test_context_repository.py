"""Tests for SQLiteConversationContextRepository."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from switchboard.domain.entities import (
    Capability,
    ConversationContext,
    ConversationTurn,
    EntityKind,
    EntityRef,
    TurnRole,
)
from switchboard.infrastructure.persistence import (
    ConversationContextModel,
    SerializationError,
    SQLiteConversationContextRepository,
)


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create in-memory SQLite async engine."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine):
    """Create async session factory."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    @asynccontextmanager
    async def get_session() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session

    return get_session


@pytest.fixture
def repository(session_factory) -> SQLiteConversationContextRepository:
    """Create test repository."""
    return SQLiteConversationContextRepository(session_factory)


def create_test_context(
    timestamp: datetime,
    id: str = "ctx-1",
    channel_id: str = "C123",
    thread_ts: str | None = None,
    **kwargs,
) -> ConversationContext:
    """Create a test ConversationContext."""
    return ConversationContext(
        id=id,
        channel_id=channel_id,
        thread_ts=thread_ts,
        user_id="U123",
        created_at=timestamp,
        last_activity_at=timestamp,
        expires_at=timestamp + timedelta(minutes=30),
        **kwargs,
    )


class TestSave:
    """save method tests."""

    async def test_save_new_context(
        self, repository: SQLiteConversationContextRepository, timestamp: datetime
    ) -> None:
        context = create_test_context(timestamp)

        await repository.save(context)

        found = await repository.find_by_id("ctx-1")
        assert found == context

    async def test_save_preserves_history_and_entities(
        self, repository: SQLiteConversationContextRepository, timestamp: datetime
    ) -> None:
        """Test that JSON columns round-trip through the database."""
        context = create_test_context(
            timestamp,
            active_capability=Capability.CRM,
        )
        context = context.with_turn(
            ConversationTurn(
                role=TurnRole.USER, content="Add Maria López", timestamp=timestamp
            ),
            10,
        )
        context = context.with_turn(
            ConversationTurn(
                role=TurnRole.ASSISTANT,
                content="Added.",
                timestamp=timestamp,
                capability=Capability.CRM,
            ),
            10,
        )
        context = context.with_entity(
            EntityRef(
                kind=EntityKind.CONTACT,
                id="c1",
                name="Maria López",
                mentioned_at=timestamp,
            ),
            5,
        )

        await repository.save(context)

        found = await repository.find_by_id("ctx-1")
        assert found is not None
        assert found.active_capability is Capability.CRM
        assert found.history == context.history
        assert found.entities == context.entities

    async def test_save_updates_existing_context(
        self, repository: SQLiteConversationContextRepository, timestamp: datetime
    ) -> None:
        context = create_test_context(timestamp)
        await repository.save(context)

        later = timestamp + timedelta(minutes=5)
        updated = context.with_active_capability(Capability.CONTENT).touched(
            later, timedelta(minutes=30)
        )
        await repository.save(updated)

        found = await repository.find_by_id("ctx-1")
        assert found is not None
        assert found.active_capability is Capability.CONTENT
        assert found.last_activity_at == later
        assert found.expires_at == later + timedelta(minutes=30)


class TestFindByScope:
    """find_by_scope method tests."""

    async def test_find_non_threaded(
        self, repository: SQLiteConversationContextRepository, timestamp: datetime
    ) -> None:
        await repository.save(create_test_context(timestamp, id="top"))
        await repository.save(
            create_test_context(timestamp, id="thread", thread_ts="111.222")
        )

        found = await repository.find_by_scope("C123", None)

        assert found is not None
        assert found.id == "top"

    async def test_find_threaded(
        self, repository: SQLiteConversationContextRepository, timestamp: datetime
    ) -> None:
        await repository.save(create_test_context(timestamp, id="top"))
        await repository.save(
            create_test_context(timestamp, id="thread", thread_ts="111.222")
        )

        found = await repository.find_by_scope("C123", "111.222")

        assert found is not None
        assert found.id == "thread"

    async def test_find_other_channel_returns_none(
        self, repository: SQLiteConversationContextRepository, timestamp: datetime
    ) -> None:
        await repository.save(create_test_context(timestamp))

        assert await repository.find_by_scope("C999", None) is None


class TestDelete:
    """delete method tests."""

    async def test_delete(
        self, repository: SQLiteConversationContextRepository, timestamp: datetime
    ) -> None:
        await repository.save(create_test_context(timestamp))

        await repository.delete("ctx-1")

        assert await repository.find_by_id("ctx-1") is None

    async def test_delete_missing_is_noop(
        self, repository: SQLiteConversationContextRepository
    ) -> None:
        await repository.delete("missing")


class TestDeleteExpired:
    """delete_expired method tests."""

    async def test_deletes_only_expired_non_threaded(
        self, repository: SQLiteConversationContextRepository, timestamp: datetime
    ) -> None:
        await repository.save(create_test_context(timestamp, id="old", channel_id="C1"))
        await repository.save(
            create_test_context(
                timestamp + timedelta(hours=1), id="fresh", channel_id="C2"
            )
        )
        await repository.save(
            create_test_context(timestamp, id="thread", thread_ts="111.222")
        )

        deleted = await repository.delete_expired(timestamp + timedelta(minutes=45))

        assert deleted == 1
        assert await repository.find_by_id("old") is None
        assert await repository.find_by_id("fresh") is not None
        assert await repository.find_by_id("thread") is not None

    async def test_threaded_contexts_never_deleted(
        self, repository: SQLiteConversationContextRepository, timestamp: datetime
    ) -> None:
        await repository.save(
            create_test_context(timestamp, id="thread", thread_ts="111.222")
        )

        deleted = await repository.delete_expired(timestamp + timedelta(days=30))

        assert deleted == 0
        assert await repository.find_by_id("thread") is not None


class TestCorruptData:
    """Corrupt row handling tests."""

    async def test_corrupt_history_raises_serialization_error(
        self,
        repository: SQLiteConversationContextRepository,
        session_factory,
        timestamp: datetime,
    ) -> None:
        async with session_factory() as session:
            session.add(
                ConversationContextModel(
                    id="broken",
                    channel_id="C123",
                    thread_ts=None,
                    user_id="U123",
                    history="not json",
                    created_at=timestamp,
                    last_activity_at=timestamp,
                    expires_at=timestamp,
                )
            )
            await session.commit()

        with pytest.raises(SerializationError):
            await repository.find_by_id("broken")
