"""Domain service protocols."""

from typing import Protocol

from switchboard.domain.entities import (
    CapabilityResponse,
    ClassificationResult,
    ConversationContext,
    ExtractedEntity,
)


class CapabilityHandler(Protocol):
    """A domain capability that answers routed messages.

    Implementations own their own tool calls, network I/O and retries.
    """

    async def handle(
        self,
        message: str,
        history: list[dict[str, str]],
        entities: tuple[ExtractedEntity, ...],
    ) -> CapabilityResponse:
        """Answer a message.

        Args:
            message: User's message.
            history: Bounded conversation history, oldest first, as
                ``{"role": ..., "content": ...}`` dicts.
            entities: Entities extracted from the message, pronouns resolved.

        Returns:
            Response text and any entities produced or referenced.
        """
        ...


class GenerativeClassifier(Protocol):
    """Model-backed intent classification.

    Implementations must not raise: transport and parse failures are
    reported as a low-confidence general result.
    """

    async def classify(
        self,
        message: str,
        context: ConversationContext | None = None,
    ) -> ClassificationResult:
        """Classify a message.

        Args:
            message: User's message.
            context: Conversation context used to build the prompt digest.

        Returns:
            Classification result.
        """
        ...


class MessagingService(Protocol):
    """Outbound chat replies."""

    async def send_message(
        self,
        channel_id: str,
        text: str,
        thread_ts: str | None = None,
    ) -> None:
        """チャンネルに投稿する (thread_ts があればスレッド返信)"""
        ...
