"""Response entities."""

from dataclasses import dataclass

from switchboard.domain.entities.conversation import EntityRef


@dataclass(frozen=True)
class CapabilityResponse:
    """Reply produced by a capability.

    Attributes:
        text: Response text for the user.
        entities: Entities the capability produced or referenced.
    """

    text: str
    entities: tuple[EntityRef, ...] = ()


@dataclass(frozen=True)
class OrchestratorResponse:
    """Reply returned to the message-ingestion layer.

    Attributes:
        message: Text to deliver to the user.
        entities: Entities reported by the capability, if any.
    """

    message: str
    entities: tuple[EntityRef, ...] | None = None
