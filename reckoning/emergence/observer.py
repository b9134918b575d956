"""EmergenceObserver — spots NPCs drifting into villain or ally roles.

After an event is committed, the observer looks at relationships around the
acting entity (and around an NPC target) and reports an opportunity when the
relationship dimensions cross the configured thresholds.

Villain: fear and resentment both at or above threshold. Low trust and low
respect strengthen the case; lingering respect or affection weaken it.

Ally: any of three paths
  trust + respect      both at or above their thresholds
  friendship           affection at threshold and trust >= 0.5
  debt                 debt >= 0.6 and respect >= 0.5
Fear or resentment >= 0.5 blocks ally emergence outright.

Opportunities with confidence below 0.3 are not reported.
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel

from reckoning.models import (
    CanonicalEvent,
    ContributingFactor,
    EmergenceDetectionResult,
    EmergenceEntity,
    EmergenceOpportunity,
    EntityRef,
    Relationship,
    clamp_unit,
)
from reckoning.storage.core import utc_now
from reckoning.storage.relationships import RelationshipRepository

logger = logging.getLogger(__name__)

MIN_REPORTED_CONFIDENCE = 0.3
ALLY_BLOCK = 0.5


class EmergenceThresholds(BaseModel):
    villain_fear: float = 0.6
    villain_resentment: float = 0.5
    ally_trust: float = 0.6
    ally_respect: float = 0.6
    ally_affection: float = 0.5
    high: float = 0.8
    medium: float = 0.6


def _normalize_above(value: float, threshold: float) -> float:
    """0 below the threshold, rising linearly to 1 at value 1.0."""
    if value < threshold:
        return 0.0
    span = 1.0 - threshold
    if span <= 0:
        return 1.0
    return min(1.0, (value - threshold) / span)


def _same(a: EntityRef, b: EntityRef) -> bool:
    return a.type == b.type and a.id == b.id


class EmergenceObserver:
    def __init__(
        self,
        relationships: RelationshipRepository,
        thresholds: EmergenceThresholds | None = None,
    ) -> None:
        self._relationships = relationships
        self.thresholds = thresholds or EmergenceThresholds()

    def on_event_committed(self, event: CanonicalEvent) -> EmergenceDetectionResult:
        opportunities: list[EmergenceOpportunity] = []

        # System actors have no relationships.
        if not event.actor_id or not event.actor_type or event.actor_type == "system":
            return self._result(event.id, opportunities)

        actor = EntityRef(type=event.actor_type, id=event.actor_id)

        for rel in self._relationships.find_by_entity(event.game_id, actor):
            other = rel.target if _same(rel.source, actor) else rel.source
            if other.type != "npc":
                continue
            npc = EmergenceEntity(type="npc", id=other.id)
            for found in (
                self.check_villain_emergence(rel, npc, event),
                self.check_ally_emergence(rel, npc, event),
            ):
                if found:
                    opportunities.append(found)

        if event.target_type == "npc" and event.target_id:
            target = EntityRef(type="npc", id=event.target_id)
            npc = EmergenceEntity(type="npc", id=event.target_id)
            for rel in self._relationships.find_by_entity(event.game_id, target):
                # Only the target's own feelings, and not toward the actor
                # (already covered above).
                if not _same(rel.source, target) or _same(rel.target, actor):
                    continue
                for found in (
                    self.check_villain_emergence(rel, npc, event),
                    self.check_ally_emergence(rel, npc, event),
                ):
                    if found and not any(
                        o.entity.id == found.entity.id and o.type == found.type
                        for o in opportunities
                    ):
                        opportunities.append(found)

        if opportunities:
            logger.info(
                "emergence detected for event %s: %s",
                event.id,
                ", ".join(f"{o.type}:{o.entity.id}" for o in opportunities),
            )
        return self._result(event.id, opportunities)

    # ------------------------------------------------------------------
    # Villain
    # ------------------------------------------------------------------

    def check_villain_emergence(
        self, rel: Relationship, npc: EmergenceEntity, event: CanonicalEvent
    ) -> EmergenceOpportunity | None:
        t = self.thresholds
        if rel.fear < t.villain_fear or rel.resentment < t.villain_resentment:
            return None

        low_trust = rel.trust < 0.3
        low_respect = rel.respect < 0.4

        factors = [
            ContributingFactor(dimension="fear", value=rel.fear, threshold=t.villain_fear),
            ContributingFactor(
                dimension="resentment", value=rel.resentment, threshold=t.villain_resentment
            ),
        ]
        if low_trust:
            factors.append(ContributingFactor(dimension="trust", value=rel.trust, threshold=0.3))
        if low_respect:
            factors.append(
                ContributingFactor(dimension="respect", value=rel.respect, threshold=0.4)
            )

        confidence = self.calculate_confidence("villain", rel)
        if confidence < MIN_REPORTED_CONFIDENCE:
            return None

        return EmergenceOpportunity(
            type="villain",
            entity=npc,
            confidence=confidence,
            reason=self._villain_reason(rel, low_trust, low_respect),
            triggering_event_id=event.id,
            contributing_factors=factors,
        )

    def _villain_reason(self, rel: Relationship, low_trust: bool, low_respect: bool) -> str:
        high = self.thresholds.high
        parts = [
            "deeply fears the party" if rel.fear >= high else "fears the party",
            "harbors deep resentment" if rel.resentment >= high else "harbors resentment",
        ]
        if low_trust and low_respect:
            parts.append("with no trust or respect remaining")
        elif low_trust:
            parts.append("with broken trust")
        elif low_respect:
            parts.append("with no respect")
        return f"NPC {', '.join(parts)}. May seek revenge or opposition."

    # ------------------------------------------------------------------
    # Ally
    # ------------------------------------------------------------------

    def _ally_paths(self, rel: Relationship) -> tuple[bool, bool, bool]:
        t = self.thresholds
        return (
            rel.trust >= t.ally_trust and rel.respect >= t.ally_respect,
            rel.affection >= t.ally_affection and rel.trust >= 0.5,
            rel.debt >= 0.6 and rel.respect >= 0.5,
        )

    def check_ally_emergence(
        self, rel: Relationship, npc: EmergenceEntity, event: CanonicalEvent
    ) -> EmergenceOpportunity | None:
        t = self.thresholds
        trust_respect, friendship, debt = self._ally_paths(rel)
        if not (trust_respect or friendship or debt):
            return None
        if rel.fear >= ALLY_BLOCK or rel.resentment >= ALLY_BLOCK:
            return None

        factors: list[ContributingFactor] = []
        if trust_respect:
            factors += [
                ContributingFactor(dimension="trust", value=rel.trust, threshold=t.ally_trust),
                ContributingFactor(
                    dimension="respect", value=rel.respect, threshold=t.ally_respect
                ),
            ]
        if friendship:
            factors.append(
                ContributingFactor(
                    dimension="affection", value=rel.affection, threshold=t.ally_affection
                )
            )
        if debt:
            factors.append(ContributingFactor(dimension="debt", value=rel.debt, threshold=0.6))

        confidence = self.calculate_confidence("ally", rel)
        if confidence < MIN_REPORTED_CONFIDENCE:
            return None

        return EmergenceOpportunity(
            type="ally",
            entity=npc,
            confidence=confidence,
            reason=self._ally_reason(rel, trust_respect, friendship, debt),
            triggering_event_id=event.id,
            contributing_factors=factors,
        )

    def _ally_reason(
        self, rel: Relationship, trust_respect: bool, friendship: bool, debt: bool
    ) -> str:
        high = self.thresholds.high
        paths: list[str] = []
        if trust_respect:
            if rel.trust >= high and rel.respect >= high:
                paths.append("has earned deep trust and respect")
            else:
                paths.append("has earned trust and respect")
        if friendship:
            paths.append(
                "has formed a strong bond" if rel.affection >= high else "has befriended them"
            )
        if debt:
            paths.append("feels indebted to the party")
        return f"NPC {' and '.join(paths)}. May offer aid or join the party."

    # ------------------------------------------------------------------
    # Confidence
    # ------------------------------------------------------------------

    def calculate_confidence(self, kind: Literal["villain", "ally"], rel: Relationship) -> float:
        t = self.thresholds

        if kind == "villain":
            confidence = (
                _normalize_above(rel.fear, t.villain_fear)
                + _normalize_above(rel.resentment, t.villain_resentment)
            ) / 2
            if rel.fear >= t.high:
                confidence += 0.1
            if rel.resentment >= t.high:
                confidence += 0.1
            if rel.trust < 0.3:
                confidence += 0.1
            if rel.respect >= 0.5:
                confidence -= 0.15
            if rel.affection >= 0.4:
                confidence -= 0.1
            return clamp_unit(confidence)

        trust_respect, friendship, debt = self._ally_paths(rel)
        confidence = 0.0
        if trust_respect:
            confidence += (
                _normalize_above(rel.trust, t.ally_trust)
                + _normalize_above(rel.respect, t.ally_respect)
            ) / 2
        if friendship:
            confidence += _normalize_above(rel.affection, t.ally_affection)
        if debt:
            confidence += _normalize_above(rel.debt, 0.6) * 0.8

        path_count = sum((trust_respect, friendship, debt))
        if path_count:
            confidence /= path_count
        if path_count >= 2:
            confidence += 0.1
        if path_count >= 3:
            confidence += 0.1
        if rel.fear >= 0.3:
            confidence -= 0.15
        if rel.resentment >= 0.3:
            confidence -= 0.15
        return clamp_unit(confidence)

    @staticmethod
    def _result(
        event_id: str, opportunities: list[EmergenceOpportunity]
    ) -> EmergenceDetectionResult:
        return EmergenceDetectionResult(
            event_id=event_id, opportunities=opportunities, timestamp=utc_now()
        )
