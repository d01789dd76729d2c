"""Pronoun resolution against recently mentioned entities."""

import logging
from dataclasses import replace

from switchboard.domain.entities import (
    ConversationContext,
    EntityKind,
    EntityRef,
    ExtractedEntity,
)

logger = logging.getLogger(__name__)

# Pronoun -> entity kinds to try, in order of preference.
PRONOUN_TARGETS: dict[str, tuple[EntityKind, ...]] = {
    **dict.fromkeys(
        ("they", "them", "their"), (EntityKind.CONTACT, EntityKind.COMPANY)
    ),
    **dict.fromkeys(("he", "him", "his", "she", "her", "hers"), (EntityKind.CONTACT,)),
    **dict.fromkeys(("it", "its"), (EntityKind.DEAL, EntityKind.COMPANY)),
}


class EntityResolver:
    """Resolves pronouns in extracted entities using conversation context."""

    def resolve_pronoun(
        self, pronoun: str, context: ConversationContext
    ) -> EntityRef | None:
        """Find the entity a pronoun most likely refers to.

        Args:
            pronoun: Pronoun as written by the user.
            context: Conversation context holding recent entities.

        Returns:
            Most recent entity of the first matching kind, or None.
        """
        kinds = PRONOUN_TARGETS.get(pronoun.strip().lower(), ())
        for kind in kinds:
            entity = context.entities.recent(kind)
            if entity is not None:
                return entity
        return None

    def resolve(
        self,
        entities: tuple[ExtractedEntity, ...],
        context: ConversationContext,
    ) -> tuple[ExtractedEntity, ...]:
        """Resolve pronoun values in extracted entities.

        Entities that are already resolved, are not pronouns, or have no
        recent match are returned unchanged.

        Args:
            entities: Entities extracted by the classifier.
            context: Conversation context.

        Returns:
            Entities with pronouns resolved where possible.
        """
        return tuple(self._resolve_one(entity, context) for entity in entities)

    def _resolve_one(
        self, entity: ExtractedEntity, context: ConversationContext
    ) -> ExtractedEntity:
        if entity.is_resolved:
            return entity

        resolved = self.resolve_pronoun(entity.value, context)
        if resolved is None:
            return entity

        logger.debug(
            "Resolved '%s' to %s %s (%s)",
            entity.value,
            resolved.kind.value,
            resolved.id,
            resolved.name,
        )
        return replace(entity, resolved_id=resolved.id, resolved_name=resolved.name)
