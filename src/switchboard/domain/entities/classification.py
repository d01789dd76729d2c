"""Intent classification result entities."""

from dataclasses import dataclass
from enum import Enum

from switchboard.domain.entities.capability import Capability


class ExtractedEntityKind(Enum):
    """Kinds of values the classifier may extract from a message."""

    CONTACT = "contact"
    DEAL = "deal"
    COMPANY = "company"
    TASK = "task"
    DATE = "date"
    AMOUNT = "amount"


@dataclass(frozen=True)
class ExtractedEntity:
    """An entity mention extracted from a message.

    Attributes:
        kind: Kind of the extracted value.
        value: Raw text as it appeared (may be a pronoun).
        resolved_id: Identifier of the entity it refers to, once resolved.
        resolved_name: Display name of the entity it refers to, once resolved.
    """

    kind: ExtractedEntityKind
    value: str
    resolved_id: str | None = None
    resolved_name: str | None = None

    @property
    def is_resolved(self) -> bool:
        return bool(self.resolved_id)


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of intent classification.

    Attributes:
        capability: Capability that should handle the message.
        intent: Brief description of what the user wants.
        confidence: Confidence level (0.0 - 1.0).
        entities: Entities extracted from the message.
    """

    capability: Capability
    intent: str
    confidence: float
    entities: tuple[ExtractedEntity, ...] = ()
