"""LLM-based intent classification."""

import json
import logging
import math
from typing import Any

from switchboard.domain.entities import (
    Capability,
    ClassificationResult,
    ConversationContext,
    EntityKind,
    ExtractedEntity,
    ExtractedEntityKind,
)
from switchboard.infrastructure.llm.client import LLMClient
from switchboard.infrastructure.llm.exceptions import LLMError
from switchboard.infrastructure.llm.templates import load_template

logger = logging.getLogger(__name__)

FALLBACK_CONFIDENCE = 0.3
DEFAULT_CONFIDENCE = 0.5
DIGEST_ENTITIES_PER_KIND = 3
DIGEST_TURNS = 4
DIGEST_TURN_PREVIEW_LENGTH = 100


def fallback_result() -> ClassificationResult:
    """Result used when the model cannot be reached or understood."""
    return ClassificationResult(
        capability=Capability.GENERAL,
        intent="Classification failed",
        confidence=FALLBACK_CONFIDENCE,
    )


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the first JSON object embedded in ``text``.

    Scans each opening brace in order and returns the first position that
    decodes to a JSON object.

    Args:
        text: Model output, possibly with prose or code fences around the JSON.

    Returns:
        Decoded object, or None if the text contains no JSON object.
    """
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            value, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)
    return None


class LLMIntentClassifier:
    """Generative intent classifier.

    Sends a compact digest of the conversation and the user message to the
    LLM and parses a single JSON object from the reply. Never raises:
    transport and parse failures produce a low-confidence general result.
    """

    def __init__(
        self,
        client: LLMClient,
        *,
        debug_llm_messages: bool = False,
    ) -> None:
        """Initialize the classifier.

        Args:
            client: LLM client for making API calls.
            debug_llm_messages: If True, log LLM messages at INFO level.
        """
        self._client = client
        self._debug_llm_messages = debug_llm_messages

    async def classify(
        self,
        message: str,
        context: ConversationContext | None = None,
    ) -> ClassificationResult:
        """Classify a message with the LLM.

        Args:
            message: User's message.
            context: Conversation context for the prompt digest.

        Returns:
            Classification result (fallback result on any failure).
        """
        messages = self._build_messages(message, context)
        if self._debug_llm_messages:
            logger.info("Classifier LLM messages: %s", messages)

        try:
            response = await self._client.complete(messages)
        except LLMError as e:
            logger.error("LLM error during classification: %s", e)
            return fallback_result()

        logger.debug("Classifier LLM response: %s", response)
        return self._parse_response(response)

    def _build_messages(
        self,
        message: str,
        context: ConversationContext | None,
    ) -> list[dict[str, str]]:
        system_prompt = load_template("classifier_system.j2").render()
        user_prompt = load_template("classifier_user.j2").render(
            message=message,
            **self._build_digest(context),
        )
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

    def _build_digest(self, context: ConversationContext | None) -> dict[str, Any]:
        """Build the template variables describing the conversation.

        Includes the active capability, up to three recent entities per kind
        and up to four recent turns truncated to 100 characters.
        """
        if context is None:
            return {"active_capability": None, "entities": [], "turns": []}

        entities = [
            f"{kind.value.capitalize()}: {entity.name}"
            for kind in EntityKind
            for entity in context.entities.latest(kind, DIGEST_ENTITIES_PER_KIND)
        ]

        turns = []
        for turn in context.history[-DIGEST_TURNS:]:
            preview = turn.content[:DIGEST_TURN_PREVIEW_LENGTH]
            if len(turn.content) > DIGEST_TURN_PREVIEW_LENGTH:
                preview += "..."
            turns.append({"role": turn.role.value, "content": preview})

        return {
            "active_capability": (
                context.active_capability.value if context.active_capability else None
            ),
            "entities": entities,
            "turns": turns,
        }

    def _parse_response(self, response: str) -> ClassificationResult:
        """Parse the LLM reply into a ClassificationResult.

        Unknown capabilities become GENERAL; confidence defaults to 0.5 and
        is clamped to [0.0, 1.0]; entities without a recognized kind or a
        value are dropped.
        """
        data = extract_json_object(response)
        if data is None:
            logger.warning("No JSON object in classifier response")
            return fallback_result()

        try:
            confidence = data.get("confidence", DEFAULT_CONFIDENCE)
            if (
                isinstance(confidence, bool)
                or not isinstance(confidence, (int, float))
                or not math.isfinite(confidence)
            ):
                confidence = DEFAULT_CONFIDENCE
            confidence = max(0.0, min(1.0, float(confidence)))

            return ClassificationResult(
                capability=Capability.parse(
                    data.get("capability", data.get("agent"))
                ),
                intent=str(data.get("intent") or "Unknown intent"),
                confidence=confidence,
                entities=self._parse_entities(data.get("entities")),
            )
        except (TypeError, ValueError) as e:
            logger.warning("Failed to parse classifier response: %s", e)
            return fallback_result()

    def _parse_entities(self, raw: Any) -> tuple[ExtractedEntity, ...]:
        if not isinstance(raw, list):
            return ()

        entities = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            value = item.get("value")
            if value is None or not str(value).strip():
                continue
            try:
                kind = ExtractedEntityKind(str(item.get("type", "")).lower())
            except ValueError:
                continue
            entities.append(
                ExtractedEntity(
                    kind=kind,
                    value=str(value).strip(),
                    resolved_id=item.get("resolved_id"),
                    resolved_name=item.get("resolved_name"),
                )
            )
        return tuple(entities)
