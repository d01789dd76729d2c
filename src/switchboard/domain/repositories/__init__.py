"""Domain repositories."""

from switchboard.domain.repositories.context_repository import (
    ConversationContextRepository,
)

__all__ = ["ConversationContextRepository"]
