"""Conversation context store."""

import logging
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from switchboard.config import ContextConfig
from switchboard.domain.entities import (
    Capability,
    ConversationContext,
    ConversationTurn,
    EntityKind,
    EntityRef,
    TurnRole,
)
from switchboard.domain.repositories import ConversationContextRepository

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ContextStore:
    """Owns conversation contexts and their invariants.

    History and entity caps are enforced on the in-memory entity before it
    is written. Mutations on a context that no longer exists are no-ops;
    callers re-fetch with get_or_create when they need a live context.
    """

    def __init__(
        self,
        repository: ConversationContextRepository,
        config: ContextConfig,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the store.

        Args:
            repository: Durable row store for contexts.
            config: History, entity and expiration limits.
            clock: Returns the current time (timezone-aware).
        """
        self._repository = repository
        self._config = config
        self._clock = clock

    @property
    def expiration(self) -> timedelta:
        return timedelta(minutes=self._config.expiration_minutes)

    async def get_or_create(
        self,
        channel_id: str,
        thread_ts: str | None = None,
        user_id: str | None = None,
    ) -> ConversationContext:
        """Return the live context for a (channel, thread) pair.

        Threaded contexts are returned regardless of expiry. A non-threaded
        context past its expiry is replaced by a fresh one.

        Args:
            channel_id: Channel ID.
            thread_ts: Thread identifier (None for non-threaded conversations).
            user_id: User starting the conversation, if known.

        Returns:
            Existing or newly created context.
        """
        now = self._clock()
        existing = await self._repository.find_by_scope(channel_id, thread_ts)

        if existing is not None:
            if not existing.is_expired(now):
                touched = existing.touched(now, self.expiration)
                await self._repository.save(touched)
                return touched

            logger.info(
                "Context %s expired at %s, starting a new conversation",
                existing.id,
                existing.expires_at.isoformat(),
            )
            await self._repository.delete(existing.id)

        context = ConversationContext(
            id=str(uuid.uuid4()),
            channel_id=channel_id,
            thread_ts=thread_ts,
            user_id=user_id or "unknown",
            created_at=now,
            last_activity_at=now,
            expires_at=now + self.expiration,
        )
        await self._repository.save(context)
        logger.debug("Created context %s for %s", context.id, context.scope_key)
        return context

    async def find(
        self,
        channel_id: str,
        thread_ts: str | None = None,
    ) -> ConversationContext | None:
        """Return the stored context of a (channel, thread) pair, if any."""
        return await self._repository.find_by_scope(channel_id, thread_ts)

    async def find_active(
        self,
        channel_id: str,
        thread_ts: str | None = None,
    ) -> ConversationContext | None:
        """Return the stored context unless it is an expired non-threaded one.

        Unlike get_or_create, this never creates or touches a row.
        """
        context = await self._repository.find_by_scope(channel_id, thread_ts)
        if context is None or context.is_expired(self._clock()):
            return None
        return context

    async def get_by_id(self, context_id: str) -> ConversationContext | None:
        return await self._repository.find_by_id(context_id)

    async def add_turn(self, context_id: str, turn: ConversationTurn) -> None:
        """Append a turn, trimming the oldest turns over the history cap."""
        context = await self._load(context_id)
        if context is None:
            return
        updated = context.with_turn(turn, self._config.history_length).touched(
            self._clock(), self.expiration
        )
        await self._repository.save(updated)

    async def add_user_message(self, context_id: str, content: str) -> None:
        await self.add_turn(
            context_id,
            ConversationTurn(
                role=TurnRole.USER, content=content, timestamp=self._clock()
            ),
        )

    async def add_assistant_message(
        self,
        context_id: str,
        content: str,
        capability: Capability | None = None,
    ) -> None:
        await self.add_turn(
            context_id,
            ConversationTurn(
                role=TurnRole.ASSISTANT,
                content=content,
                timestamp=self._clock(),
                capability=capability,
            ),
        )

    async def set_active_capability(
        self, context_id: str, capability: Capability | None
    ) -> None:
        context = await self._load(context_id)
        if context is None:
            return
        updated = context.with_active_capability(capability).touched(
            self._clock(), self.expiration
        )
        await self._repository.save(updated)

    async def add_entity(self, context_id: str, entity: EntityRef) -> None:
        """Record an entity mention.

        An entity with a known id is updated in place; a new one is appended
        and the oldest entity of its kind is evicted once over the cap.
        """
        context = await self._load(context_id)
        if context is None:
            return
        updated = context.with_entity(
            entity, self._config.max_entities_per_kind
        ).touched(self._clock(), self.expiration)
        await self._repository.save(updated)

    async def get_recent_entity(
        self, context_id: str, kind: EntityKind
    ) -> EntityRef | None:
        """Return the most recently added entity of a kind."""
        context = await self._repository.find_by_id(context_id)
        if context is None:
            return None
        return context.entities.recent(kind)

    async def touch_activity(self, context_id: str, is_threaded: bool) -> None:
        """Refresh last activity, and the expiry for non-threaded contexts."""
        context = await self._load(context_id)
        if context is None:
            return
        now = self._clock()
        if is_threaded:
            updated = replace(context, last_activity_at=now)
        else:
            updated = replace(
                context, last_activity_at=now, expires_at=now + self.expiration
            )
        await self._repository.save(updated)

    async def history_for_llm(self, context_id: str) -> list[dict[str, str]]:
        """Return the bounded history as OpenAI-format messages."""
        context = await self._repository.find_by_id(context_id)
        if context is None:
            return []
        return [
            {"role": turn.role.value, "content": turn.content}
            for turn in context.history
        ]

    async def cleanup_expired(self) -> int:
        """Delete expired non-threaded contexts.

        Returns:
            Number of deleted contexts.
        """
        deleted = await self._repository.delete_expired(self._clock())
        if deleted:
            logger.info("Removed %d expired conversation contexts", deleted)
        return deleted

    async def delete(self, context_id: str) -> None:
        await self._repository.delete(context_id)

    async def _load(self, context_id: str) -> ConversationContext | None:
        context = await self._repository.find_by_id(context_id)
        if context is None:
            logger.debug("Context %s no longer exists, skipping update", context_id)
        return context
