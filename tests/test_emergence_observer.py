"""Tests for EmergenceObserver — villain and ally detection."""

from pathlib import Path

import pytest

from reckoning.emergence import EmergenceObserver, EmergenceThresholds
from reckoning.models import CanonicalEvent, EntityRef
from reckoning.storage import RelationshipRepository

GUARD = EntityRef(type="npc", id="guard")
MERCHANT = EntityRef(type="npc", id="merchant")
PLAYER = EntityRef(type="player", id="player")


def make_event(**overrides) -> CanonicalEvent:
    data = {
        "id": "evt-1",
        "game_id": "g1",
        "turn": 4,
        "timestamp": "2024-01-01T00:00:00+00:00",
        "event_type": "party_action",
        "content": "You stare the guard down.",
        "location_id": "gate",
        "actor_type": "player",
        "actor_id": "player",
    }
    data.update(overrides)
    return CanonicalEvent(**data)


@pytest.fixture
def relationships(data_dir: Path) -> RelationshipRepository:
    return RelationshipRepository(data_dir)


@pytest.fixture
def observer(relationships: RelationshipRepository) -> EmergenceObserver:
    return EmergenceObserver(relationships)


# ---------------------------------------------------------------------------
# Villain
# ---------------------------------------------------------------------------

class TestVillain:
    def test_feared_and_resented(self, observer, relationships) -> None:
        relationships.upsert(
            "g1", GUARD, PLAYER, updated_turn=3,
            fear=0.9, resentment=0.9, trust=0.1, respect=0.2, affection=0.0,
        )
        result = observer.on_event_committed(make_event())
        assert result.event_id == "evt-1"
        [opp] = result.opportunities
        assert opp.type == "villain"
        assert opp.entity.id == "guard"
        assert opp.confidence == 1.0
        assert opp.triggering_event_id == "evt-1"
        assert opp.reason == (
            "NPC deeply fears the party, harbors deep resentment, "
            "with no trust or respect remaining. May seek revenge or opposition."
        )
        assert [f.dimension for f in opp.contributing_factors] == [
            "fear", "resentment", "trust", "respect",
        ]

    def test_below_threshold(self, observer, relationships) -> None:
        relationships.upsert("g1", GUARD, PLAYER, updated_turn=3, fear=0.55, resentment=0.9)
        assert observer.on_event_committed(make_event()).opportunities == []

    def test_weak_case_not_reported(self, observer, relationships) -> None:
        # Barely over both thresholds with respect and affection intact.
        relationships.upsert(
            "g1", GUARD, PLAYER, updated_turn=3,
            fear=0.6, resentment=0.5, respect=0.6, affection=0.5,
        )
        assert observer.on_event_committed(make_event()).opportunities == []

    def test_custom_thresholds(self, relationships) -> None:
        relationships.upsert(
            "g1", GUARD, PLAYER, updated_turn=3,
            fear=0.55, resentment=0.7, trust=0.1, respect=0.45, affection=0.0,
        )
        observer = EmergenceObserver(
            relationships, EmergenceThresholds(villain_fear=0.4, villain_resentment=0.4)
        )
        [opp] = observer.on_event_committed(make_event()).opportunities
        assert opp.type == "villain"
        assert opp.reason == (
            "NPC fears the party, harbors resentment, with broken trust. "
            "May seek revenge or opposition."
        )


# ---------------------------------------------------------------------------
# Ally
# ---------------------------------------------------------------------------

class TestAlly:
    def test_trust_and_respect(self, observer, relationships) -> None:
        relationships.upsert(
            "g1", GUARD, PLAYER, updated_turn=3, trust=0.9, respect=0.9, affection=0.3
        )
        [opp] = observer.on_event_committed(make_event()).opportunities
        assert opp.type == "ally"
        assert opp.confidence == pytest.approx(0.75)
        assert opp.reason == "NPC has earned deep trust and respect. May offer aid or join the party."

    def test_two_paths(self, observer, relationships) -> None:
        relationships.upsert(
            "g1", GUARD, PLAYER, updated_turn=3, trust=0.9, respect=0.9, affection=0.5
        )
        [opp] = observer.on_event_committed(make_event()).opportunities
        assert opp.confidence == pytest.approx(0.475)
        assert opp.reason == (
            "NPC has earned deep trust and respect and has befriended them. "
            "May offer aid or join the party."
        )
        assert [f.dimension for f in opp.contributing_factors] == ["trust", "respect", "affection"]

    def test_fear_blocks_ally(self, observer, relationships) -> None:
        relationships.upsert(
            "g1", GUARD, PLAYER, updated_turn=3, trust=0.9, respect=0.9, fear=0.5
        )
        assert observer.on_event_committed(make_event()).opportunities == []

    def test_zero_confidence_not_reported(self, observer, relationships) -> None:
        relationships.upsert("g1", GUARD, PLAYER, updated_turn=3, trust=0.6, respect=0.6)
        assert observer.on_event_committed(make_event()).opportunities == []

    def test_debt_path(self, observer, relationships) -> None:
        relationships.upsert(
            "g1", GUARD, PLAYER, updated_turn=3, trust=0.5, respect=0.5, affection=0.0, debt=1.0
        )
        [opp] = observer.on_event_committed(make_event()).opportunities
        assert opp.reason == "NPC feels indebted to the party. May offer aid or join the party."
        assert opp.confidence == pytest.approx(0.8)


# ---------------------------------------------------------------------------
# Scope of the scan
# ---------------------------------------------------------------------------

class TestScope:
    def test_system_actor_skipped(self, observer, relationships) -> None:
        relationships.upsert("g1", GUARD, PLAYER, updated_turn=3, fear=0.9, resentment=0.9)
        event = make_event(actor_type="system", actor_id="narrator")
        assert observer.on_event_committed(event).opportunities == []

    def test_missing_actor(self, observer) -> None:
        event = make_event(actor_type=None, actor_id=None)
        assert observer.on_event_committed(event).opportunities == []

    def test_non_npc_counterparts_ignored(self, observer, relationships) -> None:
        lyra = EntityRef(type="character", id="char_lyra")
        relationships.upsert("g1", lyra, PLAYER, updated_turn=3, fear=0.9, resentment=0.9)
        assert observer.on_event_committed(make_event()).opportunities == []

    def test_npc_target_feelings_are_scanned(self, observer, relationships) -> None:
        # The merchant resents the guard; the player's action targets the merchant.
        relationships.upsert(
            "g1", MERCHANT, GUARD, updated_turn=3, fear=0.9, resentment=0.9, trust=0.1
        )
        event = make_event(target_type="npc", target_id="merchant")
        [opp] = observer.on_event_committed(event).opportunities
        assert (opp.type, opp.entity.id) == ("villain", "merchant")

    def test_target_scan_does_not_duplicate(self, observer, relationships) -> None:
        relationships.upsert("g1", GUARD, PLAYER, updated_turn=3, fear=0.9, resentment=0.9)
        relationships.upsert("g1", GUARD, MERCHANT, updated_turn=3, fear=0.9, resentment=0.9)
        event = make_event(target_type="npc", target_id="guard")
        opportunities = observer.on_event_committed(event).opportunities
        assert [(o.type, o.entity.id) for o in opportunities] == [("villain", "guard")]

    def test_other_games_ignored(self, observer, relationships) -> None:
        relationships.upsert("g2", GUARD, PLAYER, updated_turn=3, fear=0.9, resentment=0.9)
        assert observer.on_event_committed(make_event()).opportunities == []
