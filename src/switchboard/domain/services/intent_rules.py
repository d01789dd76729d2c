"""Deterministic intent rules.

Quick rules cover the common phrasings of each capability so that they can
be routed without a model call. They are ordered: the first matching group
wins.
"""

import re
from dataclasses import dataclass

from switchboard.domain.entities import Capability, ClassificationResult

QUICK_RULE_CONFIDENCE = 0.95
FOLLOW_UP_CONFIDENCE = 0.85


@dataclass(frozen=True)
class QuickRule:
    """A group of patterns that route to one capability.

    Attributes:
        capability: Capability selected when any pattern matches.
        intent: Intent description reported on a match.
        patterns: Regular expressions tested against the lower-cased message.
    """

    capability: Capability
    intent: str
    patterns: tuple[re.Pattern[str], ...]

    def matches(self, normalized: str) -> bool:
        return any(pattern.search(normalized) for pattern in self.patterns)


def _compile(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(pattern) for pattern in patterns)


QUICK_RULES: tuple[QuickRule, ...] = (
    QuickRule(
        capability=Capability.CONTENT,
        intent="Content operation",
        patterns=_compile(
            r"^(write|draft|create|edit)\s+(a\s+)?(linkedin|post|article|content)",
            r"^show\s+(my\s+)?drafts?",
            r"^(approve|reject)\s+(draft|this)",
            r"^what.*topics?",
            r"^add\s+topic",
        ),
    ),
    QuickRule(
        capability=Capability.CRM,
        intent="CRM operation",
        patterns=_compile(
            r"^(add|create|update|find|show|list)\s+(a\s+)?(contact|company|deal|task|note)",
            r"^log\s+(a\s+)?note",
            r"^(create|add)\s+.*as\s+a\s+contact",
            r"^follow\s*up\s+(with|on)",
            r"pipeline\s+summary",
            r"show\s+(my\s+)?(deals|tasks|contacts)",
        ),
    ),
    QuickRule(
        capability=Capability.ISSUES,
        intent="Issue tracking operation",
        patterns=_compile(
            r"^(create|open|file|update|close)\s+(an?\s+)?(issue|ticket|bug)",
            r"^(show|list)\s+(my\s+)?(issues|tickets|bugs)",
            r"\b(current|active)\s+sprint\b",
        ),
    ),
    QuickRule(
        capability=Capability.GENERAL,
        intent="Greeting or general query",
        patterns=_compile(
            r"^(hi|hello|hey|good\s+(morning|afternoon|evening))\b",
            r"^(thanks|thank\s+you)",
            r"^help$",
            r"^what\s+can\s+you\s+do",
        ),
    ),
)

FOLLOW_UP_MARKERS: tuple[str, ...] = (
    "also",
    "and",
    "actually",
    "wait",
    "oh",
    "yes",
    "no",
    "ok",
    "okay",
    "sure",
    "what about",
    "how about",
    "can you also",
    "he",
    "she",
    "they",
    "it",
    "them",
    "that",
    "this",
)

_FOLLOW_UP_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(marker) for marker in FOLLOW_UP_MARKERS) + r")\b"
)


def normalize_message(message: str) -> str:
    """Lower-case and strip a message for rule matching."""
    return message.lower().strip()


def quick_classify(
    message: str,
    rules: tuple[QuickRule, ...] = QUICK_RULES,
) -> ClassificationResult | None:
    """Classify a message with the quick rules.

    Args:
        message: Raw user message.
        rules: Ordered rule groups.

    Returns:
        High-confidence result for the first matching group, or None.
    """
    normalized = normalize_message(message)
    for rule in rules:
        if rule.matches(normalized):
            return ClassificationResult(
                capability=rule.capability,
                intent=rule.intent,
                confidence=QUICK_RULE_CONFIDENCE,
            )
    return None


def is_follow_up(message: str, max_length: int) -> bool:
    """Return True if a message reads as a continuation of the exchange.

    Short messages are treated as continuations, as are messages containing
    an acknowledgement, a connective or a bare pronoun.

    Args:
        message: Raw user message.
        max_length: Messages shorter than this are continuations.
    """
    normalized = normalize_message(message)
    if len(normalized) < max_length:
        return True
    return _FOLLOW_UP_PATTERN.search(normalized) is not None
