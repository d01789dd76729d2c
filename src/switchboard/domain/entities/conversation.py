"""Conversation context entities."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from switchboard.domain.entities.capability import Capability


class TurnRole(Enum):
    """Speaker of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"


class EntityKind(Enum):
    """Kinds of domain objects tracked for pronoun resolution."""

    CONTACT = "contact"
    DEAL = "deal"
    COMPANY = "company"

    @property
    def list_key(self) -> str:
        """Key of this kind's list in the serialized entity memory."""
        if self is EntityKind.COMPANY:
            return "companies"
        return f"{self.value}s"


@dataclass(frozen=True)
class ConversationTurn:
    """One message recorded in a conversation history.

    Attributes:
        role: Who said it.
        content: Message text.
        timestamp: When it was recorded.
        capability: Capability that produced an assistant turn.
    """

    role: TurnRole
    content: str
    timestamp: datetime
    capability: Capability | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.capability is not None:
            data["capability"] = self.capability.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConversationTurn":
        capability = data.get("capability")
        return cls(
            role=TurnRole(data["role"]),
            content=data["content"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            capability=Capability.parse(capability) if capability else None,
        )


@dataclass(frozen=True)
class EntityRef:
    """A recently mentioned domain object.

    Attributes:
        kind: Contact, deal or company.
        id: Identifier in the owning system.
        name: Display name.
        mentioned_at: When it was mentioned.
    """

    kind: EntityKind
    id: str
    name: str
    mentioned_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "id": self.id,
            "name": self.name,
            "mentioned_at": self.mentioned_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EntityRef":
        return cls(
            kind=EntityKind(data["kind"]),
            id=data["id"],
            name=data["name"],
            mentioned_at=datetime.fromisoformat(data["mentioned_at"]),
        )


@dataclass(frozen=True)
class EntityMemory:
    """Bounded lists of recently mentioned entities, one per kind.

    Lists are ordered oldest first. The most recent entity of a kind is
    the last element of its list.
    """

    contacts: tuple[EntityRef, ...] = ()
    deals: tuple[EntityRef, ...] = ()
    companies: tuple[EntityRef, ...] = ()

    def of_kind(self, kind: EntityKind) -> tuple[EntityRef, ...]:
        """Return the list for a kind."""
        return getattr(self, kind.list_key)

    def recent(self, kind: EntityKind) -> EntityRef | None:
        """Return the most recently added entity of a kind."""
        entities = self.of_kind(kind)
        return entities[-1] if entities else None

    def latest(self, kind: EntityKind, count: int) -> tuple[EntityRef, ...]:
        """Return up to ``count`` most recent entities of a kind, oldest first."""
        if count <= 0:
            return ()
        return self.of_kind(kind)[-count:]

    def with_entity(self, entity: EntityRef, max_per_kind: int) -> "EntityMemory":
        """Return a copy with ``entity`` recorded.

        An entity whose id is already present replaces that entry in place.
        Otherwise it is appended and the oldest entries are evicted until the
        list is within ``max_per_kind``.

        Args:
            entity: Entity to record.
            max_per_kind: Maximum list length per kind.

        Returns:
            Updated EntityMemory.
        """
        entities = list(self.of_kind(entity.kind))
        for index, existing in enumerate(entities):
            if existing.id == entity.id:
                entities[index] = entity
                break
        else:
            entities.append(entity)
            if len(entities) > max_per_kind:
                entities = entities[len(entities) - max_per_kind :]

        return replace(self, **{entity.kind.list_key: tuple(entities)})

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            kind.list_key: [entity.to_dict() for entity in self.of_kind(kind)]
            for kind in EntityKind
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "EntityMemory":
        if not data:
            return cls()
        lists: dict[str, tuple[EntityRef, ...]] = {}
        for kind in EntityKind:
            lists[kind.list_key] = tuple(
                EntityRef.from_dict(item) for item in data.get(kind.list_key, [])
            )
        return cls(**lists)


@dataclass(frozen=True)
class ConversationContext:
    """Persisted state of one conversation.

    One context exists per (channel_id, thread_ts) pair. Contexts with a
    thread_ts never expire; non-threaded contexts expire after a period of
    inactivity and are removed by the periodic sweep.

    Attributes:
        id: Context identifier.
        channel_id: Chat channel ID.
        thread_ts: Thread identifier (None for non-threaded conversations).
        user_id: User who started the conversation.
        active_capability: Capability that answered the last routed message.
        history: Recorded turns, oldest first.
        entities: Recently mentioned entities.
        created_at: Creation time.
        last_activity_at: Last time the conversation was touched.
        expires_at: Expiry time (only meaningful when not threaded).
    """

    id: str
    channel_id: str
    thread_ts: str | None
    user_id: str
    created_at: datetime
    last_activity_at: datetime
    expires_at: datetime
    active_capability: Capability | None = None
    history: tuple[ConversationTurn, ...] = ()
    entities: EntityMemory = field(default_factory=EntityMemory)

    @property
    def is_threaded(self) -> bool:
        return self.thread_ts is not None

    @property
    def scope_key(self) -> str:
        """Key identifying the (channel, thread) pair."""
        return scope_key(self.channel_id, self.thread_ts)

    def is_expired(self, now: datetime) -> bool:
        """Return True if a non-threaded context is past its expiry.

        Threaded contexts are never considered expired.
        """
        if self.is_threaded:
            return False
        return self.expires_at < now

    def with_turn(
        self, turn: ConversationTurn, max_history: int
    ) -> "ConversationContext":
        """Return a copy with ``turn`` appended, keeping the newest turns."""
        history = (*self.history, turn)
        if len(history) > max_history:
            history = history[len(history) - max_history :]
        return replace(self, history=history)

    def with_entity(self, entity: EntityRef, max_per_kind: int) -> "ConversationContext":
        """Return a copy with ``entity`` recorded in the entity memory."""
        return replace(self, entities=self.entities.with_entity(entity, max_per_kind))

    def with_active_capability(
        self, capability: Capability | None
    ) -> "ConversationContext":
        return replace(self, active_capability=capability)

    def touched(self, now: datetime, expiration: timedelta) -> "ConversationContext":
        """Return a copy with activity refreshed.

        The expiry is only pushed forward for non-threaded contexts.
        """
        if self.is_threaded:
            return replace(self, last_activity_at=now)
        return replace(self, last_activity_at=now, expires_at=now + expiration)


def scope_key(channel_id: str, thread_ts: str | None) -> str:
    """Build the key identifying a (channel, thread) pair."""
    return f"{channel_id}:{thread_ts or 'top'}"
