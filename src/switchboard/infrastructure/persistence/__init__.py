"""Persistence infrastructure."""

from switchboard.infrastructure.persistence.context_repository import (
    SQLiteConversationContextRepository,
)
from switchboard.infrastructure.persistence.database import DatabaseManager
from switchboard.infrastructure.persistence.exceptions import (
    PersistenceError,
    SerializationError,
)
from switchboard.infrastructure.persistence.models import ConversationContextModel

__all__ = [
    "ConversationContextModel",
    "DatabaseManager",
    "PersistenceError",
    "SQLiteConversationContextRepository",
    "SerializationError",
]
