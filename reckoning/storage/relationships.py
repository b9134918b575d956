"""Directed relationships between entities, six dimensions each in [0, 1]."""

from __future__ import annotations

import logging
from typing import get_args

from reckoning.models import EntityRef, Relationship, RelationshipDimension, clamp_unit

from .core import JsonStore

logger = logging.getLogger(__name__)

RELATIONSHIP_DIMENSIONS: tuple[RelationshipDimension, ...] = get_args(RelationshipDimension)

DIMENSION_DEFAULTS: dict[str, float] = {
    "trust": 0.5,
    "respect": 0.5,
    "affection": 0.5,
    "fear": 0.0,
    "resentment": 0.0,
    "debt": 0.0,
}


def _same(a: EntityRef, b: EntityRef) -> bool:
    return a.type == b.type and a.id == b.id


class RelationshipRepository(JsonStore):
    filename = "relationships.json"

    def _all(self, game_id: str) -> list[Relationship]:
        return [Relationship.model_validate(r) for r in self._load_rows(game_id)]

    def upsert(
        self,
        game_id: str,
        source: EntityRef,
        target: EntityRef,
        updated_turn: int,
        **dimensions: float | None,
    ) -> Relationship:
        """Create or update the relationship source → target.

        Dimensions not given keep their stored value, or the default when the
        relationship is new. Values are clamped to [0, 1].
        """
        unknown = set(dimensions) - set(RELATIONSHIP_DIMENSIONS)
        if unknown:
            raise ValueError(f"Unknown relationship dimensions: {', '.join(sorted(unknown))}")

        now = self._now()
        rows = self._all(game_id)
        for i, rel in enumerate(rows):
            if _same(rel.source, source) and _same(rel.target, target):
                changes = {k: clamp_unit(v) for k, v in dimensions.items() if v is not None}
                changes.update(updated_turn=updated_turn, updated_at=now)
                rows[i] = rel.model_copy(update=changes)
                self._save_rows(game_id, [r.model_dump() for r in rows])
                return rows[i]

        values = dict(DIMENSION_DEFAULTS)
        values.update({k: v for k, v in dimensions.items() if v is not None})
        rel = Relationship(
            id=self._new_id(),
            game_id=game_id,
            source=source,
            target=target,
            updated_turn=updated_turn,
            created_at=now,
            updated_at=now,
            **values,
        )
        rows.append(rel)
        self._save_rows(game_id, [r.model_dump() for r in rows])
        logger.info(
            "created relationship %s:%s -> %s:%s (game %s)",
            source.type, source.id, target.type, target.id, game_id,
        )
        return rel

    def find_between(
        self, game_id: str, source: EntityRef, target: EntityRef
    ) -> Relationship | None:
        for rel in self._all(game_id):
            if _same(rel.source, source) and _same(rel.target, target):
                return rel
        return None

    def find_by_entity(self, game_id: str, entity: EntityRef) -> list[Relationship]:
        """Relationships where the entity is either side."""
        return [
            rel for rel in self._all(game_id)
            if _same(rel.source, entity) or _same(rel.target, entity)
        ]
