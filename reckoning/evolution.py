"""Evolution service — narrator decisions over the pending evolution queue.

detect_evolutions() turns model suggestions into queued proposals. approve(),
edit() and refuse() are the only paths by which a proposal reaches the trait
and relationship stores; refusing leaves world state untouched.
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import BaseModel, Field

from reckoning.models import (
    EntityRef,
    EntityType,
    EvolutionType,
    PendingEvolution,
    RelationshipDimension,
    clamp_unit,
)
from reckoning.storage import (
    DIMENSION_DEFAULTS,
    InvalidTransitionError,
    PendingEvolutionQueue,
    RelationshipRepository,
    TraitRepository,
)

logger = logging.getLogger(__name__)

AggregateLabel = Literal[
    "devoted",
    "terrified",
    "enemy",
    "rival",
    "resentful",
    "ally",
    "friend",
    "indebted",
    "wary",
    "indifferent",
]


class EvolutionSuggestion(BaseModel):
    """A model-proposed change. Relationship changes carry a relative `change`."""

    evolution_type: EvolutionType
    entity_type: EntityType
    entity_id: str
    reason: str
    trait: str | None = None
    target_type: EntityType | None = None
    target_id: str | None = None
    dimension: RelationshipDimension | None = None
    change: float = 0.0


class EventRef(BaseModel):
    id: str
    turn: int


class RelationshipDimensions(BaseModel):
    trust: float = 0.5
    respect: float = 0.5
    affection: float = 0.5
    fear: float = 0.0
    resentment: float = 0.0
    debt: float = 0.0


class RelationshipSummary(BaseModel):
    target_type: EntityType
    target_id: str
    label: AggregateLabel
    dimensions: RelationshipDimensions


class EntitySummary(BaseModel):
    entity_type: EntityType
    entity_id: str
    traits: list[str] = Field(default_factory=list)
    relationships: list[RelationshipSummary] = Field(default_factory=list)


def compute_aggregate_label(d: RelationshipDimensions) -> AggregateLabel:
    """Collapse six dimensions into one word. First matching rung wins."""
    if d.trust > 0.7 and d.affection > 0.7 and d.respect > 0.6:
        return "devoted"
    if d.fear > 0.7 and d.resentment > 0.5:
        return "terrified"
    if d.fear > 0.5 and d.resentment > 0.6:
        return "enemy"
    if d.respect > 0.5 and d.resentment > 0.5:
        return "rival"
    if d.resentment > 0.6:
        return "resentful"
    if d.trust > 0.6 and d.respect > 0.6:
        return "ally"
    if d.affection > 0.6 and d.trust > 0.5:
        return "friend"
    if d.debt > 0.6:
        return "indebted"
    if d.trust < 0.3 or d.fear > 0.4:
        return "wary"
    return "indifferent"


class EvolutionService:
    def __init__(
        self,
        queue: PendingEvolutionQueue,
        traits: TraitRepository,
        relationships: RelationshipRepository,
    ) -> None:
        self._queue = queue
        self._traits = traits
        self._relationships = relationships

    def detect_evolutions(
        self, game_id: str, event: EventRef, suggestions: list[EvolutionSuggestion] | None = None
    ) -> list[PendingEvolution]:
        created: list[PendingEvolution] = []
        for s in suggestions or []:
            proposal: dict[str, Any] = {
                "game_id": game_id,
                "turn": event.turn,
                "evolution_type": s.evolution_type,
                "entity_type": s.entity_type,
                "entity_id": s.entity_id,
                "reason": s.reason,
                "source_event_id": event.id,
            }
            if s.evolution_type == "relationship_change":
                old_value = self._current_value(game_id, s)
                proposal.update(
                    target_type=s.target_type,
                    target_id=s.target_id,
                    dimension=s.dimension,
                    old_value=old_value,
                    new_value=clamp_unit(old_value + s.change),
                )
            else:
                proposal["trait"] = s.trait
            created.append(self._queue.create(proposal))
        return created

    def _current_value(self, game_id: str, s: EvolutionSuggestion) -> float:
        if s.target_type is None or s.target_id is None or s.dimension is None:
            raise ValueError("relationship_change suggestion needs target_type, target_id and dimension")
        rel = self._relationships.find_between(
            game_id,
            EntityRef(type=s.entity_type, id=s.entity_id),
            EntityRef(type=s.target_type, id=s.target_id),
        )
        if rel is None:
            return DIMENSION_DEFAULTS[s.dimension]
        return getattr(rel, s.dimension)

    # ------------------------------------------------------------------
    # Narrator decisions
    # ------------------------------------------------------------------

    def _get_pending(self, evolution_id: str) -> PendingEvolution:
        evolution = self._queue.find_by_id(evolution_id)
        if evolution is None:
            raise KeyError(f"Pending evolution not found: {evolution_id}")
        if evolution.status != "pending":
            raise InvalidTransitionError(
                f"Evolution {evolution_id} is already {evolution.status}"
            )
        return evolution

    def approve(self, evolution_id: str, dm_notes: str | None = None) -> PendingEvolution:
        evolution = self._get_pending(evolution_id)
        self._apply(evolution)
        resolved = self._queue.resolve(evolution_id, "approved", dm_notes)
        assert resolved is not None
        return resolved

    def edit(
        self, evolution_id: str, changes: dict[str, Any], dm_notes: str | None = None
    ) -> PendingEvolution:
        self._get_pending(evolution_id)
        updated = self._queue.update(evolution_id, changes)
        assert updated is not None
        self._apply(updated)
        resolved = self._queue.resolve(evolution_id, "edited", dm_notes)
        assert resolved is not None
        return resolved

    def refuse(self, evolution_id: str, dm_notes: str | None = None) -> PendingEvolution:
        self._get_pending(evolution_id)
        resolved = self._queue.resolve(evolution_id, "refused", dm_notes)
        assert resolved is not None
        return resolved

    def _apply(self, e: PendingEvolution) -> None:
        if e.evolution_type == "trait_add":
            self._traits.add_trait(
                e.game_id, e.entity_type, e.entity_id, e.trait, e.turn, e.source_event_id
            )
        elif e.evolution_type == "trait_remove":
            self._traits.remove_trait(e.game_id, e.entity_type, e.entity_id, e.trait)
        else:
            self._relationships.upsert(
                e.game_id,
                EntityRef(type=e.entity_type, id=e.entity_id),
                EntityRef(type=e.target_type, id=e.target_id),
                e.turn,
                **{e.dimension: e.new_value},
            )
        logger.info("applied %s to %s/%s", e.evolution_type, e.entity_type, e.entity_id)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def get_pending_evolutions(
        self, game_id: str, pending_only: bool = True
    ) -> list[PendingEvolution]:
        if pending_only:
            return self._queue.find_pending(game_id)
        return self._queue.find_by_game(game_id)

    def get_entity_summary(
        self, game_id: str, entity_type: EntityType, entity_id: str
    ) -> EntitySummary:
        entity = EntityRef(type=entity_type, id=entity_id)
        summaries = []
        for rel in self._relationships.find_by_entity(game_id, entity):
            other = rel.target if rel.source == entity else rel.source
            dims = RelationshipDimensions(
                trust=rel.trust,
                respect=rel.respect,
                affection=rel.affection,
                fear=rel.fear,
                resentment=rel.resentment,
                debt=rel.debt,
            )
            summaries.append(
                RelationshipSummary(
                    target_type=other.type,
                    target_id=other.id,
                    label=compute_aggregate_label(dims),
                    dimensions=dims,
                )
            )
        return EntitySummary(
            entity_type=entity_type,
            entity_id=entity_id,
            traits=[t.trait for t in self._traits.find_by_entity(game_id, entity_type, entity_id)],
            relationships=summaries,
        )
