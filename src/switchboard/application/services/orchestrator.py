"""Message orchestrator."""

import logging
from collections.abc import Mapping

from switchboard.application.services.context_store import ContextStore
from switchboard.application.services.intent_classifier import IntentClassifier
from switchboard.application.services.keyed_lock import KeyedLock
from switchboard.domain.entities import (
    Capability,
    ClassificationResult,
    ConversationContext,
    OrchestratorResponse,
    scope_key,
)
from switchboard.domain.exceptions import CapabilityError, CapabilityNotRegisteredError
from switchboard.domain.services import CapabilityHandler, EntityResolver

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = "Sorry, something went wrong on my side. Please try again in a moment."
CLARIFICATION_INTRO = "I'm not sure what you'd like to do. Are you looking to:"
CLARIFICATION_OUTRO = "Could you tell me more about what you need?"
SOMETHING_ELSE_OPTION = "Something else"


def build_clarification_message(classification: ClassificationResult) -> str:
    """Build the question asked when confidence is too low to dispatch.

    Lists the candidate capability (unless it is the general fallback)
    followed by a "something else" option.
    """
    options = []
    if classification.capability is not Capability.GENERAL:
        options.append(classification.capability.description)
    options.append(SOMETHING_ELSE_OPTION)

    numbered = "\n".join(
        f"{index}. {option}" for index, option in enumerate(options, start=1)
    )
    return f"{CLARIFICATION_INTRO}\n\n{numbered}\n\n{CLARIFICATION_OUTRO}"


class Orchestrator:
    """Routes each message to the capability that should answer it.

    Per message: record the user turn, classify, either ask for
    clarification or resolve entities and dispatch, then record the
    outcome. Messages of the same conversation are processed one at a time.
    """

    def __init__(
        self,
        context_store: ContextStore,
        classifier: IntentClassifier,
        resolver: EntityResolver,
        capabilities: Mapping[Capability, CapabilityHandler],
    ) -> None:
        """Initialize the orchestrator.

        Args:
            context_store: Conversation context store.
            classifier: Intent classifier.
            resolver: Pronoun resolver.
            capabilities: Handler per capability. GENERAL is required and
                answers for any capability without a handler.

        Raises:
            CapabilityNotRegisteredError: No GENERAL handler was given.
        """
        if Capability.GENERAL not in capabilities:
            raise CapabilityNotRegisteredError(
                "A handler for the general capability is required"
            )
        self._context_store = context_store
        self._classifier = classifier
        self._resolver = resolver
        self._capabilities = dict(capabilities)
        self._locks = KeyedLock()

    async def handle(
        self,
        message: str,
        channel_id: str,
        thread_ts: str | None = None,
        user_id: str | None = None,
    ) -> OrchestratorResponse:
        """Handle an inbound message.

        Never raises: failures are logged and answered with a short apology.

        Args:
            message: User's message text.
            channel_id: Channel the message was posted in.
            thread_ts: Thread identifier (None for non-threaded conversations).
            user_id: Sender's user ID.

        Returns:
            Response to deliver to the user.
        """
        async with self._locks.acquire(scope_key(channel_id, thread_ts)):
            try:
                context = await self._context_store.get_or_create(
                    channel_id, thread_ts, user_id
                )
                await self._context_store.add_user_message(context.id, message)
            except Exception:
                logger.exception(
                    "Failed to record message: channel=%s, thread_ts=%s",
                    channel_id,
                    thread_ts,
                )
                return OrchestratorResponse(message=APOLOGY_MESSAGE)

            try:
                return await self._process(message, context)
            except Exception as e:
                logger.exception(
                    "Error handling message: context=%s, channel=%s, thread_ts=%s",
                    context.id,
                    channel_id,
                    thread_ts,
                )
                return await self._respond_with_error(context, e)

    async def open_conversation(
        self,
        channel_id: str,
        thread_ts: str | None = None,
        user_id: str | None = None,
    ) -> ConversationContext:
        """会話のコンテキストを用意する (ターンは記録しない)

        本文のないメンションでもスレッドを会話中として扱うために使う。
        """
        async with self._locks.acquire(scope_key(channel_id, thread_ts)):
            return await self._context_store.get_or_create(
                channel_id, thread_ts, user_id
            )

    async def get_context(
        self,
        channel_id: str,
        thread_ts: str | None = None,
    ) -> ConversationContext | None:
        """Return the live context of a conversation without creating one."""
        try:
            return await self._context_store.find_active(channel_id, thread_ts)
        except Exception:
            logger.exception(
                "Failed to load context: channel=%s, thread_ts=%s",
                channel_id,
                thread_ts,
            )
            return None

    async def cleanup(self) -> int:
        """Remove expired non-threaded contexts.

        Storage errors propagate; ContextSweeper logs them and retries on
        its next tick.

        Returns:
            Number of removed contexts.
        """
        return await self._context_store.cleanup_expired()

    async def _process(
        self,
        message: str,
        context: ConversationContext,
    ) -> OrchestratorResponse:
        classification = await self._classifier.classify(message, context)

        if self._classifier.needs_clarification(classification):
            text = build_clarification_message(classification)
            await self._context_store.add_assistant_message(context.id, text)
            logger.info(
                "Asked for clarification: context=%s, confidence=%.2f",
                context.id,
                classification.confidence,
            )
            return OrchestratorResponse(message=text)

        entities = self._resolver.resolve(classification.entities, context)
        capability, handler = self._select_handler(classification.capability)
        history = await self._context_store.history_for_llm(context.id)

        response = await handler.handle(message, history, entities)

        await self._context_store.add_assistant_message(
            context.id, response.text, capability
        )
        await self._context_store.set_active_capability(context.id, capability)
        for entity in response.entities:
            await self._context_store.add_entity(context.id, entity)

        return OrchestratorResponse(
            message=response.text,
            entities=response.entities or None,
        )

    def _select_handler(
        self, capability: Capability
    ) -> tuple[Capability, CapabilityHandler]:
        handler = self._capabilities.get(capability)
        if handler is not None:
            return capability, handler
        logger.warning(
            "No handler registered for %s, using general", capability.value
        )
        return Capability.GENERAL, self._capabilities[Capability.GENERAL]

    async def _respond_with_error(
        self,
        context: ConversationContext,
        error: Exception,
    ) -> OrchestratorResponse:
        if isinstance(error, CapabilityError):
            text = error.user_message
        else:
            text = APOLOGY_MESSAGE

        try:
            await self._context_store.add_assistant_message(context.id, text)
        except Exception:
            logger.exception("Failed to record error response: context=%s", context.id)
        return OrchestratorResponse(message=text)
