"""LLM integration."""

from switchboard.infrastructure.llm.capabilities import (
    GeneralCapability,
    PromptedCapability,
)
from switchboard.infrastructure.llm.client import LLMClient
from switchboard.infrastructure.llm.exceptions import (
    LLMAuthenticationError,
    LLMError,
    LLMRateLimitError,
)
from switchboard.infrastructure.llm.intent_classifier import LLMIntentClassifier

__all__ = [
    "GeneralCapability",
    "LLMAuthenticationError",
    "LLMClient",
    "LLMError",
    "LLMIntentClassifier",
    "LLMRateLimitError",
    "PromptedCapability",
]
