"""Domain services."""

from switchboard.domain.services.entity_resolver import EntityResolver
from switchboard.domain.services.intent_rules import (
    FOLLOW_UP_CONFIDENCE,
    QUICK_RULE_CONFIDENCE,
    QUICK_RULES,
    QuickRule,
    is_follow_up,
    quick_classify,
)
from switchboard.domain.services.protocols import (
    CapabilityHandler,
    GenerativeClassifier,
    MessagingService,
)

__all__ = [
    "FOLLOW_UP_CONFIDENCE",
    "QUICK_RULES",
    "QUICK_RULE_CONFIDENCE",
    "CapabilityHandler",
    "EntityResolver",
    "GenerativeClassifier",
    "MessagingService",
    "QuickRule",
    "is_follow_up",
    "quick_classify",
]
