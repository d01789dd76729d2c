"""ConversationContext repository protocol."""

from datetime import datetime
from typing import Protocol

from switchboard.domain.entities import ConversationContext


class ConversationContextRepository(Protocol):
    """Durable row store for conversation contexts."""

    async def find_by_scope(
        self,
        channel_id: str,
        thread_ts: str | None,
    ) -> ConversationContext | None:
        """Find the context of a (channel, thread) pair.

        Args:
            channel_id: Channel ID.
            thread_ts: Thread identifier (None for non-threaded conversations).

        Returns:
            Context, or None if no row exists.
        """
        ...

    async def find_by_id(self, context_id: str) -> ConversationContext | None:
        """Find a context by its identifier.

        Args:
            context_id: Context ID.

        Returns:
            Context, or None if no row exists.
        """
        ...

    async def save(self, context: ConversationContext) -> None:
        """Insert the context, or overwrite the full row if the id exists.

        Args:
            context: Context to save.
        """
        ...

    async def delete(self, context_id: str) -> None:
        """Delete a context by id. Missing rows are ignored.

        Args:
            context_id: Context ID.
        """
        ...

    async def delete_expired(self, before: datetime) -> int:
        """Delete non-threaded contexts whose expiry is before ``before``.

        Threaded contexts are never deleted by this method.

        Args:
            before: Cut-off time.

        Returns:
            Number of deleted rows.
        """
        ...
