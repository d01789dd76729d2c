"""Intent classification service."""

import logging

from switchboard.config import ClassifierConfig
from switchboard.domain.entities import ClassificationResult, ConversationContext
from switchboard.domain.services import (
    FOLLOW_UP_CONFIDENCE,
    GenerativeClassifier,
    is_follow_up,
    quick_classify,
)

logger = logging.getLogger(__name__)


class IntentClassifier:
    """Decides which capability should handle a message.

    Classification runs in three tiers, stopping at the first that yields
    a result:

    1. quick rules (no model call, confidence 0.95);
    2. follow-up bias towards the active capability (confidence 0.85);
    3. the generative classifier.

    The classifier also owns the confidence gate parameters used by the
    orchestrator.
    """

    def __init__(
        self,
        generative: GenerativeClassifier,
        config: ClassifierConfig,
    ) -> None:
        """Initialize the classifier.

        Args:
            generative: Model-backed fallback classifier.
            config: Thresholds and follow-up length.
        """
        self._generative = generative
        self._config = config

    def quick_classify(self, message: str) -> ClassificationResult | None:
        """Classify with the deterministic rules only."""
        return quick_classify(message)

    def is_follow_up(self, message: str) -> bool:
        return is_follow_up(message, self._config.follow_up_max_length)

    async def classify(
        self,
        message: str,
        context: ConversationContext | None = None,
    ) -> ClassificationResult:
        """Classify a message using all tiers.

        Args:
            message: User's message.
            context: Conversation context (active capability, entities, history).

        Returns:
            Classification result.
        """
        result = self.quick_classify(message)
        if result is not None:
            self._log_result("quick", result)
            return result

        if (
            context is not None
            and context.active_capability is not None
            and self.is_follow_up(message)
        ):
            result = ClassificationResult(
                capability=context.active_capability,
                intent="Follow-up to previous message",
                confidence=FOLLOW_UP_CONFIDENCE,
            )
            self._log_result("follow_up", result)
            return result

        result = await self._generative.classify(message, context)
        self._log_result("generative", result)
        return result

    def needs_clarification(self, result: ClassificationResult) -> bool:
        """Return True if confidence is too low to dispatch."""
        return result.confidence < self._config.clarification_threshold

    def should_route_directly(self, result: ClassificationResult) -> bool:
        """Return True if confidence is high enough to route without gating."""
        return result.confidence >= self._config.direct_route_threshold

    def _log_result(self, tier: str, result: ClassificationResult) -> None:
        logger.info(
            "Classified message: tier=%s, capability=%s, confidence=%.2f, intent=%s",
            tier,
            result.capability.value,
            result.confidence,
            result.intent,
        )
