"""LLM-backed default capability handlers.

These answer conversationally with a domain system prompt. Tool-calling
implementations for a capability replace them by registering a different
handler with the orchestrator.
"""

import logging

from switchboard.domain.entities import (
    Capability,
    CapabilityResponse,
    ExtractedEntity,
)
from switchboard.infrastructure.llm.client import LLMClient
from switchboard.infrastructure.llm.templates import load_template

logger = logging.getLogger(__name__)

CAPABILITY_INSTRUCTIONS: dict[Capability, str] = {
    Capability.CONTENT: (
        "You are a content assistant. You help write and edit LinkedIn posts "
        "and articles, manage drafts, and collect topics and research for "
        "future posts."
    ),
    Capability.CRM: (
        "You are a CRM assistant. You help manage contacts, companies, deals, "
        "tasks and notes, and summarize the sales pipeline."
    ),
    Capability.ISSUES: (
        "You are an issue tracking assistant. You help create and update "
        "issues, review assigned work, and summarize projects and sprints."
    ),
}


def _build_llm_messages(
    system_prompt: str,
    message: str,
    history: list[dict[str, str]],
) -> list[dict[str, str]]:
    """Build OpenAI-format messages.

    The history already ends with the current user turn; it is not
    appended a second time.
    """
    messages = [{"role": "system", "content": system_prompt}]
    messages.extend(
        {"role": turn["role"], "content": turn["content"]} for turn in history
    )
    if not history or history[-1] != {"role": "user", "content": message}:
        messages.append({"role": "user", "content": message})
    return messages


class GeneralCapability:
    """Answers greetings, help requests and unclear queries."""

    def __init__(
        self,
        client: LLMClient,
        *,
        debug_llm_messages: bool = False,
    ) -> None:
        self._client = client
        self._debug_llm_messages = debug_llm_messages
        self._system_prompt = load_template("general_system.j2").render(
            capabilities=[c for c in Capability if c is not Capability.GENERAL]
        )

    async def handle(
        self,
        message: str,
        history: list[dict[str, str]],
        entities: tuple[ExtractedEntity, ...],
    ) -> CapabilityResponse:
        """Generate a general response.

        Raises:
            LLMError: If response generation fails.
        """
        messages = _build_llm_messages(self._system_prompt, message, history)
        if self._debug_llm_messages:
            logger.info("General capability LLM messages: %s", messages)
        text = await self._client.complete(messages)
        return CapabilityResponse(text=text)


class PromptedCapability:
    """Conversational handler for a single domain capability."""

    def __init__(
        self,
        capability: Capability,
        client: LLMClient,
        *,
        instructions: str | None = None,
        debug_llm_messages: bool = False,
    ) -> None:
        """Initialize the handler.

        Args:
            capability: Capability this handler answers for.
            client: LLM client.
            instructions: Domain instructions (defaults per capability).
            debug_llm_messages: If True, log LLM messages at INFO level.
        """
        self._capability = capability
        self._client = client
        self._instructions = instructions or CAPABILITY_INSTRUCTIONS.get(
            capability, ""
        )
        self._debug_llm_messages = debug_llm_messages
        self._template = load_template("capability_system.j2")

    @property
    def capability(self) -> Capability:
        return self._capability

    async def handle(
        self,
        message: str,
        history: list[dict[str, str]],
        entities: tuple[ExtractedEntity, ...],
    ) -> CapabilityResponse:
        """Generate a response for the capability's domain.

        Raises:
            LLMError: If response generation fails.
        """
        system_prompt = self._template.render(
            instructions=self._instructions,
            entities=entities,
        )
        messages = _build_llm_messages(system_prompt, message, history)
        if self._debug_llm_messages:
            logger.info(
                "%s capability LLM messages: %s", self._capability.value, messages
            )
        text = await self._client.complete(messages)
        return CapabilityResponse(text=text)
