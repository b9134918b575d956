"""Tests for reckoning.event_builder — metadata vs inference per field."""

import pytest

from reckoning.event_builder import EventBuilder
from reckoning.models import ActorRef, GenerationParams, NamedEntity, TargetRef

LYRA = NamedEntity(id="char_lyra", name="Lyra")
BORIN = NamedEntity(id="char_borin", name="Borin")
CAPTAIN = NamedEntity(id="captain", name="Captain")
MERCHANT = NamedEntity(id="merchant", name="Merchant")
BANDIT = NamedEntity(id="npc_bandit", name="Bandit")


@pytest.fixture
def builder() -> EventBuilder:
    return EventBuilder()


# ---------------------------------------------------------------------------
# build_from_generation
# ---------------------------------------------------------------------------

class TestBuildFromGeneration:
    def test_guard_addresses_player(self, builder: EventBuilder) -> None:
        data = builder.build_from_generation(GenerationParams(
            event_type="npc_dialogue",
            content='The guard says "Halt! You there!"',
            speaker="Guard",
        ))
        assert data.actor_type == "npc"
        assert data.actor_id == "guard"
        assert data.target_type == "player"
        assert data.target_id == "player"
        assert data.action is None
        assert data.tags == []

    def test_party_member_spares_npc(self, builder: EventBuilder) -> None:
        data = builder.build_from_generation(GenerationParams(
            event_type="party_action",
            content="Lyra spared the bandit.",
            speaker="lyra",
            party_members=[LYRA, BORIN],
            npcs_present=[BANDIT],
        ))
        assert (data.actor_type, data.actor_id) == ("character", "char_lyra")
        assert (data.target_type, data.target_id) == ("npc", "npc_bandit")
        assert data.action == "spare_enemy"
        assert data.tags == ["mercy", "spare_enemy", "party_action"]
        assert data.witnesses == []

    def test_metadata_wins_per_field(self, builder: EventBuilder) -> None:
        data = builder.build_from_generation(GenerationParams(
            event_type="party_action",
            content="You killed the ogre in battle.",
            metadata={
                "action": "execute",
                "actor": {"type": "character", "id": "char_borin"},
                "tags": ["boss"],
            },
            npcs_present=[BANDIT],
        ))
        assert data.action == "execute"
        assert (data.actor_type, data.actor_id) == ("character", "char_borin")
        # targets absent from metadata fall back to inference (none mentioned)
        assert data.target_id is None
        assert data.tags == ["boss", "violence", "execute", "party_action", "combat"]

    def test_unknown_metadata_action_falls_back_to_inference(
        self, builder: EventBuilder
    ) -> None:
        data = builder.build_from_generation(GenerationParams(
            event_type="party_action",
            content="You killed the ogre.",
            metadata={"action": "obliterate"},
        ))
        assert data.action == "kill"

    def test_empty_metadata_lists_fall_back(self, builder: EventBuilder) -> None:
        data = builder.build_from_generation(GenerationParams(
            event_type="party_action",
            content="You bribed the Merchant.",
            metadata={"targets": [], "witnesses": []},
            npcs_present=[MERCHANT],
        ))
        assert data.target_id == "merchant"

    def test_metadata_targets_and_witnesses(self, builder: EventBuilder) -> None:
        data = builder.build_from_generation(GenerationParams(
            event_type="narration",
            content="Something happens.",
            metadata={
                "targets": [{"type": "area", "id": "market"}, {"type": "npc", "id": "x"}],
                "witnesses": [
                    {"type": "npc", "id": "a"}, {"type": "npc", "id": "b"},
                    {"type": "npc", "id": "a"},
                ],
            },
        ))
        assert (data.target_type, data.target_id) == ("area", "market")
        assert data.witnesses == ["a", "b"]

    def test_metadata_tags_kept_without_action(self, builder: EventBuilder) -> None:
        data = builder.build_from_generation(GenerationParams(
            event_type="environment",
            content="Rain falls.",
            metadata={"tags": ["weather", "weather"]},
        ))
        assert data.action is None
        assert data.tags == ["weather"]
        assert (data.actor_type, data.actor_id) == ("system", "narrator")

    def test_deterministic(self, builder: EventBuilder) -> None:
        params = GenerationParams(
            event_type="npc_action",
            content="The Captain shouted at the crowd and threatened you.",
            speaker="Captain",
            npcs_present=[CAPTAIN, MERCHANT],
        )
        assert builder.build_from_generation(params) == builder.build_from_generation(params)


# ---------------------------------------------------------------------------
# Actor
# ---------------------------------------------------------------------------

class TestDetermineActor:
    def test_npc_events(self, builder: EventBuilder) -> None:
        assert builder.determine_actor("narration", "npc_action", "Old Tom") == ActorRef(
            type="npc", id="old_tom"
        )

    def test_npc_response_without_speaker(self, builder: EventBuilder) -> None:
        assert builder.determine_actor("npc_response", "narration") == ActorRef(
            type="npc", id="unknown"
        )

    def test_party_speaker_matches_member(self, builder: EventBuilder) -> None:
        actor = builder.determine_actor("narration", "party_dialogue", "BORIN", [LYRA, BORIN])
        assert actor == ActorRef(type="character", id="char_borin")

    def test_party_speaker_unknown_defaults_to_player(self, builder: EventBuilder) -> None:
        actor = builder.determine_actor("narration", "party_action", "Stranger", [LYRA])
        assert actor == ActorRef(type="player", id="player")

    @pytest.mark.parametrize(
        "event_type, actor_id",
        [("narration", "narrator"), ("environment", "narrator"), ("dm_injection", "dm")],
    )
    def test_system_actors(self, builder: EventBuilder, event_type: str, actor_id: str) -> None:
        assert builder.determine_actor("dm_continuation", event_type) == ActorRef(
            type="system", id=actor_id
        )


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Guard", "guard"),
        ("Captain  O'Hara", "captain_o_hara"),
        ("  --Old Tom--  ", "old_tom"),
        ("Élan", "lan"),
    ],
)
def test_normalize_id(name: str, expected: str):
    assert EventBuilder.normalize_id(name) == expected


# ---------------------------------------------------------------------------
# Targets and witnesses
# ---------------------------------------------------------------------------

class TestTargets:
    def test_npc_event_targets_members_then_player(self, builder: EventBuilder) -> None:
        targets = builder.extract_targets(
            "The merchant hands Lyra your change.", "npc_action", [], [LYRA, BORIN]
        )
        assert targets == [
            TargetRef(type="character", id="char_lyra"),
            TargetRef(type="player", id="player"),
        ]

    def test_player_mention_needs_word_boundary(self, builder: EventBuilder) -> None:
        assert not builder.mentions_player("The youth counted the yourt poles")
        assert builder.mentions_player("The heroes arrive")

    def test_party_event_targets_npcs(self, builder: EventBuilder) -> None:
        targets = builder.extract_targets(
            "I ask the captain about the merchant", "party_dialogue", [CAPTAIN, MERCHANT], []
        )
        assert [t.id for t in targets] == ["captain", "merchant"]

    def test_narration_has_no_inferred_targets(self, builder: EventBuilder) -> None:
        assert builder.extract_targets("You see the Captain", "narration", [CAPTAIN], [LYRA]) == []


class TestWitnesses:
    def test_mentioned_entities_excluding_actor_and_targets(
        self, builder: EventBuilder
    ) -> None:
        witnesses = builder.extract_witnesses(
            "Lyra and the Merchant watch as Borin threatens the Captain",
            ActorRef(type="character", id="char_borin"),
            [TargetRef(type="npc", id="captain")],
            [CAPTAIN, MERCHANT],
            [LYRA, BORIN],
        )
        assert witnesses == ["merchant", "char_lyra"]

    def test_public_event_adds_all_present_npcs(self, builder: EventBuilder) -> None:
        witnesses = builder.extract_witnesses(
            "The captain shouted orders to the crowd",
            ActorRef(type="npc", id="captain"),
            [],
            [CAPTAIN, MERCHANT, BANDIT],
            [],
        )
        # captain is mentioned but is the actor; nobody else named, so the cue applies
        assert witnesses == ["merchant", "npc_bandit"]

    def test_private_event_without_mentions(self, builder: EventBuilder) -> None:
        assert builder.extract_witnesses("A quiet word", None, [], [MERCHANT], []) == []


# ---------------------------------------------------------------------------
# Tags and inference
# ---------------------------------------------------------------------------

class TestGenerateTags:
    def test_base_tags(self, builder: EventBuilder) -> None:
        assert builder.generate_tags("rest", "Quiet night.", "narration") == [
            "character", "rest", "narration",
        ]

    def test_context_and_emotion_tags(self, builder: EventBuilder) -> None:
        tags = builder.generate_tags(
            "kill",
            "In the battle, the furious knight found the enemy. Tears and fear everywhere.",
            "party_action",
        )
        assert tags == [
            "violence", "kill", "party_action",
            "combat", "discovery",
            "emotional:anger", "emotional:sadness", "emotional:fear",
        ]


class TestInferAction:
    @pytest.mark.parametrize(
        "content, action",
        [
            ("The orc was slain.", "kill"),
            ("She lunged at the thief.", "attack_first"),
            ("He let the boy go.", "spare_enemy"),
            ("They freed the captive.", "release_prisoner"),
            ("He confessed everything.", "confess"),
            ("You bribed the guard.", "bribe"),
            ("We arrived at the gates.", "enter_location"),
            ("She cast a spell.", "use_ability"),
            ("He knelt before the altar.", "pray"),
        ],
    )
    def test_ladder(self, builder: EventBuilder, content: str, action: str) -> None:
        assert builder.infer_action(content) == action

    def test_first_rung_wins(self, builder: EventBuilder) -> None:
        # violence precedes mercy on the ladder
        assert builder.infer_action("He spared one and killed the other") == "kill"

    def test_cues_anchor_at_word_start(self, builder: EventBuilder) -> None:
        assert builder.infer_action("The guards arrested the thief") is None
        assert builder.infer_action("He applied the salve") is None

    def test_no_cue(self, builder: EventBuilder) -> None:
        assert builder.infer_action("Rain falls on the cobbles.") is None
