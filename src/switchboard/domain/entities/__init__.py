"""Domain entities."""

from switchboard.domain.entities.capability import Capability
from switchboard.domain.entities.classification import (
    ClassificationResult,
    ExtractedEntity,
    ExtractedEntityKind,
)
from switchboard.domain.entities.conversation import (
    ConversationContext,
    ConversationTurn,
    EntityKind,
    EntityMemory,
    EntityRef,
    TurnRole,
    scope_key,
)
from switchboard.domain.entities.responses import (
    CapabilityResponse,
    OrchestratorResponse,
)

__all__ = [
    "Capability",
    "CapabilityResponse",
    "ClassificationResult",
    "ConversationContext",
    "ConversationTurn",
    "EntityKind",
    "EntityMemory",
    "EntityRef",
    "ExtractedEntity",
    "ExtractedEntityKind",
    "OrchestratorResponse",
    "TurnRole",
    "scope_key",
]
