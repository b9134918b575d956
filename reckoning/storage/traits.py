"""Traits currently held by entities."""

from __future__ import annotations

import logging

from reckoning.models import EntityType, Trait

from .core import JsonStore

logger = logging.getLogger(__name__)


class TraitRepository(JsonStore):
    filename = "traits.json"

    def _all(self, game_id: str) -> list[Trait]:
        return [Trait.model_validate(r) for r in self._load_rows(game_id)]

    def add_trait(
        self,
        game_id: str,
        entity_type: EntityType,
        entity_id: str,
        trait: str,
        turn: int,
        source_event_id: str | None = None,
    ) -> Trait:
        """Give an entity a trait. Adding a trait it already has is a no-op."""
        rows = self._all(game_id)
        for existing in rows:
            if (existing.entity_type, existing.entity_id, existing.trait) == (
                entity_type, entity_id, trait,
            ):
                return existing
        added = Trait(
            id=self._new_id(),
            game_id=game_id,
            entity_type=entity_type,
            entity_id=entity_id,
            trait=trait,
            turn=turn,
            source_event_id=source_event_id,
            created_at=self._now(),
        )
        rows.append(added)
        self._save_rows(game_id, [t.model_dump() for t in rows])
        logger.info("trait %r added to %s/%s (game %s)", trait, entity_type, entity_id, game_id)
        return added

    def remove_trait(
        self, game_id: str, entity_type: EntityType, entity_id: str, trait: str
    ) -> bool:
        """Returns True if the trait was present."""
        rows = self._all(game_id)
        kept = [
            t for t in rows
            if (t.entity_type, t.entity_id, t.trait) != (entity_type, entity_id, trait)
        ]
        if len(kept) == len(rows):
            return False
        self._save_rows(game_id, [t.model_dump() for t in kept])
        logger.info("trait %r removed from %s/%s (game %s)", trait, entity_type, entity_id, game_id)
        return True

    def find_by_entity(
        self, game_id: str, entity_type: EntityType, entity_id: str
    ) -> list[Trait]:
        return [
            t for t in self._all(game_id)
            if t.entity_type == entity_type and t.entity_id == entity_id
        ]
