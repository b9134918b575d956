"""Core domain models.

Every component reads and writes these types. Pydantic validates them at each
data boundary: AI metadata coming in, JSON rows going to and from disk, and
request bodies on the HTTP surface.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from reckoning.actions import Action, ActionCategory

EventType = Literal[
    "narration",
    "party_action",
    "party_dialogue",
    "npc_action",
    "npc_dialogue",
    "environment",
    "dm_injection",
]

GenerationType = Literal[
    "narration",
    "npc_response",
    "environment_reaction",
    "dm_continuation",
]

ActorType = Literal["player", "character", "npc", "system"]
TargetType = Literal["player", "character", "npc", "area", "object"]
EntityType = Literal["player", "character", "npc", "location"]
EmergenceEntityType = Literal["player", "character", "npc", "location", "item"]

RelationshipDimension = Literal["trust", "respect", "affection", "fear", "resentment", "debt"]

EvolutionType = Literal["trait_add", "trait_remove", "relationship_change"]
EvolutionStatus = Literal["pending", "approved", "edited", "refused"]

EmergenceType = Literal["villain", "ally"]
NotificationStatus = Literal["pending", "acknowledged", "dismissed"]


def clamp_unit(value: float) -> float:
    """Clamp a score to the closed interval [0, 1]."""
    return max(0.0, min(1.0, float(value)))


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class PatternMatch(BaseModel):
    """Best rule hit inside one category."""

    action: Action
    confidence: float
    pattern: str  # regex source, kept for debugging


class ClassificationResult(BaseModel):
    """Outcome of classifying one piece of narrative text."""

    action: Action | None = None
    category: ActionCategory | None = None
    confidence: float = 0.0
    used_ai_fallback: bool = False
    matched_pattern: str | None = None

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: float | None) -> float:
        return clamp_unit(value or 0.0)


# ---------------------------------------------------------------------------
# Structured events
# ---------------------------------------------------------------------------

class ActorRef(BaseModel):
    type: ActorType
    id: str


class TargetRef(BaseModel):
    type: TargetType
    id: str


class WitnessRef(BaseModel):
    type: ActorType
    id: str


class NamedEntity(BaseModel):
    """An NPC or party member present in the scene."""

    id: str
    name: str


class AIStructuredMetadata(BaseModel):
    """Structured hints the generating model attached to its output.

    `action` is a plain string here: models sometimes invent verbs, and an
    unknown verb must fall back to inference rather than fail validation.
    """

    action: str | None = None
    actor: ActorRef | None = None
    targets: list[TargetRef] = Field(default_factory=list)
    witnesses: list[WitnessRef] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class GenerationParams(BaseModel):
    """Everything the EventBuilder knows about one generated passage."""

    generation_type: GenerationType = "narration"
    event_type: EventType
    content: str
    metadata: AIStructuredMetadata | None = None
    speaker: str | None = None
    npcs_present: list[NamedEntity] = Field(default_factory=list)
    party_members: list[NamedEntity] = Field(default_factory=list)
    location_id: str | None = None


class StructuredEventData(BaseModel):
    action: Action | None = None
    actor_type: ActorType | None = None
    actor_id: str | None = None
    target_type: TargetType | None = None
    target_id: str | None = None
    witnesses: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class CanonicalEvent(StructuredEventData):
    """A committed event. Owned by the narrative commit pipeline; read-only here."""

    model_config = ConfigDict(frozen=True)

    id: str
    game_id: str
    turn: int
    timestamp: str
    event_type: EventType
    content: str
    original_generated: str | None = None
    speaker: str | None = None
    location_id: str


# ---------------------------------------------------------------------------
# Pending evolutions
# ---------------------------------------------------------------------------

_RELATIONSHIP_FIELDS = ("target_type", "target_id", "dimension", "old_value", "new_value")


class TraitEvolutionInput(BaseModel):
    """Proposal to add or remove a trait."""

    model_config = ConfigDict(extra="forbid")

    game_id: str
    turn: int = Field(ge=0)
    evolution_type: Literal["trait_add", "trait_remove"]
    entity_type: EntityType
    entity_id: str
    trait: str = Field(min_length=1)
    reason: str
    source_event_id: str | None = None


class RelationshipEvolutionInput(BaseModel):
    """Proposal to move one relationship dimension to a new value."""

    model_config = ConfigDict(extra="forbid")

    game_id: str
    turn: int = Field(ge=0)
    evolution_type: Literal["relationship_change"]
    entity_type: EntityType
    entity_id: str
    target_type: EntityType
    target_id: str
    dimension: RelationshipDimension
    old_value: float = Field(ge=0.0, le=1.0)
    new_value: float = Field(ge=0.0, le=1.0)
    reason: str
    source_event_id: str | None = None


class PendingEvolution(BaseModel):
    """A queued trait or relationship change awaiting narrator review."""

    id: str
    game_id: str
    turn: int
    evolution_type: EvolutionType
    entity_type: EntityType
    entity_id: str
    trait: str | None = None
    target_type: EntityType | None = None
    target_id: str | None = None
    dimension: RelationshipDimension | None = None
    old_value: float | None = Field(default=None, ge=0.0, le=1.0)
    new_value: float | None = Field(default=None, ge=0.0, le=1.0)
    reason: str
    source_event_id: str | None = None
    status: EvolutionStatus = "pending"
    dm_notes: str | None = None
    created_at: str
    resolved_at: str | None = None

    @model_validator(mode="after")
    def _payload_matches_type(self) -> PendingEvolution:
        relationship_set = [f for f in _RELATIONSHIP_FIELDS if getattr(self, f) is not None]
        if self.evolution_type == "relationship_change":
            if self.trait is not None:
                raise ValueError("relationship_change must not carry a trait")
            missing = [f for f in _RELATIONSHIP_FIELDS if f not in relationship_set]
            if missing:
                raise ValueError(f"relationship_change is missing {', '.join(missing)}")
        else:
            if self.trait is None:
                raise ValueError(f"{self.evolution_type} requires a trait")
            if relationship_set:
                raise ValueError(
                    f"{self.evolution_type} must not carry {', '.join(relationship_set)}"
                )
        return self


# ---------------------------------------------------------------------------
# Relationships and traits
# ---------------------------------------------------------------------------

class EntityRef(BaseModel):
    type: EntityType
    id: str


class Relationship(BaseModel):
    """Directed relationship: how `source` feels about `target`."""

    id: str
    game_id: str
    source: EntityRef
    target: EntityRef
    trust: float = 0.5
    respect: float = 0.5
    affection: float = 0.5
    fear: float = 0.0
    resentment: float = 0.0
    debt: float = 0.0
    updated_turn: int = 0
    created_at: str
    updated_at: str

    @field_validator("trust", "respect", "affection", "fear", "resentment", "debt", mode="before")
    @classmethod
    def _clamp_dimension(cls, value: float) -> float:
        return clamp_unit(value)


class Trait(BaseModel):
    id: str
    game_id: str
    entity_type: EntityType
    entity_id: str
    trait: str
    turn: int
    source_event_id: str | None = None
    created_at: str


# ---------------------------------------------------------------------------
# Emergence
# ---------------------------------------------------------------------------

class EmergenceEntity(BaseModel):
    type: EmergenceEntityType
    id: str


class ContributingFactor(BaseModel):
    dimension: str
    value: float
    threshold: float


class EmergenceOpportunity(BaseModel):
    type: EmergenceType
    entity: EmergenceEntity
    confidence: float
    reason: str
    triggering_event_id: str
    contributing_factors: list[ContributingFactor] = Field(default_factory=list)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        return clamp_unit(value)


class EmergenceDetectionResult(BaseModel):
    event_id: str
    opportunities: list[EmergenceOpportunity] = Field(default_factory=list)
    timestamp: str


class EmergenceNotification(BaseModel):
    """A narrator-facing signal that an entity is growing into a role."""

    id: str
    game_id: str
    emergence_type: EmergenceType
    entity: EmergenceEntity
    confidence: float
    reason: str
    triggering_event_id: str
    contributing_factors: list[ContributingFactor] = Field(default_factory=list)
    status: NotificationStatus = "pending"
    dm_notes: str | None = None
    created_at: str
    resolved_at: str | None = None

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        return clamp_unit(value)
