"""EventBuilder — structured event fields from one generated passage.

Each field is resolved independently:
  1. metadata attached by the generating model, when present and usable
  2. inference from the content and the scene roster
  3. absent

The builder does no I/O. Given the same GenerationParams it always returns the
same StructuredEventData.
"""

from __future__ import annotations

import re

from reckoning.actions import Action, get_action_category, is_valid_action
from reckoning.models import (
    ActorRef,
    EventType,
    GenerationParams,
    GenerationType,
    NamedEntity,
    StructuredEventData,
    TargetRef,
)


def _cues(*phrases: str) -> tuple[re.Pattern[str], ...]:
    """Compile cue phrases anchored at the start of a word."""
    return tuple(re.compile(rf"\b{p}", re.IGNORECASE) for p in phrases)


# Inference ladder: first matching rung wins. Rung order is fixed.
_ACTION_LADDER: tuple[tuple[Action, tuple[re.Pattern[str], ...]], ...] = (
    # violence
    ("kill", _cues("killed", "slew", "slain", "struck down", "murdered")),
    ("execute", _cues("executed", "execution")),
    ("attack_first", _cues("attacked first", "initiated attack", "struck first", "lunged at")),
    ("threaten", _cues("threaten", "threatens", "threatened", "menaced", "intimidated")),
    ("torture", _cues("tortured", "tormented")),
    # mercy
    ("spare_enemy", _cues("spared", "let.*go", "released.*enemy", "didn't kill")),
    ("show_mercy", _cues("showed mercy", "merciful", "had mercy")),
    ("forgive", _cues("forgave", "forgiven", "pardoned")),
    ("heal_enemy", _cues("healed.*enemy", "tended.*wounds")),
    ("release_prisoner", _cues("released.*prisoner", "freed.*captive", "unlocked.*cell")),
    # honesty
    ("tell_truth", _cues("told the truth", "spoke honestly", "truthfully")),
    ("confess", _cues("confessed", "admitted")),
    ("reveal_secret", _cues("revealed.*secret", "disclosed")),
    ("keep_promise", _cues("kept.*promise", "honored.*word")),
    ("lie", _cues("lied", "lying", "false claim")),
    ("deceive", _cues("deceived", "tricked", "fooled")),
    ("break_promise", _cues("broke.*promise", "broken.*word")),
    ("withhold_info", _cues("withheld", "kept secret", "didn't mention")),
    # social
    ("help", _cues("helped", "assisted", "aided")),
    ("betray", _cues("betrayed", "backstabbed", "double-crossed")),
    ("befriend", _cues("befriended", "made friends", "bonded with")),
    ("insult", _cues("insulted", "mocked", "ridiculed")),
    ("intimidate", _cues("intimidated", "frightened", "scared into")),
    ("persuade", _cues("persuaded", "convinced", "talked into")),
    ("bribe", _cues("bribed", "paid off", "offered gold")),
    # exploration
    ("enter_location", _cues("entered", "stepped into", "walked into", "arrived at")),
    ("examine", _cues("examined", "inspected", "looked closely")),
    ("search", _cues("searched", "looked for", "rummaged")),
    ("steal", _cues("stole", "pilfered", "pickpocketed", "snatched")),
    ("unlock", _cues("unlocked", "picked.*lock", "opened.*door")),
    ("destroy", _cues("destroyed", "smashed", "broke")),
    # character
    ("level_up", _cues("leveled up", "gained.*level", "grew stronger")),
    ("acquire_item", _cues("acquired", "obtained", "picked up", "received")),
    ("use_ability", _cues("used.*ability", "cast.*spell", "activated")),
    ("rest", _cues("rested", "slept", "made camp")),
    ("pray", _cues("prayed", "knelt.*altar", "offered.*prayer")),
    ("meditate", _cues("meditated", "focused.*mind", "centered")),
)

_CONTEXT_TAGS: tuple[tuple[str, tuple[re.Pattern[str], ...]], ...] = (
    ("combat", _cues("battle", "fight", "combat", "attack", "defend", "sword", "weapon")),
    ("dialogue", _cues("conversation", "spoke", "said", "asked", "replied", "negotiate")),
    ("discovery", _cues("found", "discovered", "explored", "noticed", "spotted", "revealed")),
    ("emotional:anger", _cues("angry", "furious", "rage")),
    ("emotional:sadness", _cues("sad", "grief", "mourning", "tears")),
    ("emotional:joy", _cues("happy", "joy", "celebrate", "pleased")),
    ("emotional:fear", _cues("fear", "afraid", "terrified", "scared")),
)

_PLAYER_MENTION = re.compile(r"\b(?:you|your|party|adventurers|heroes)\b", re.IGNORECASE)

_PUBLIC_CUES = _cues(
    "loudly", "shouted", "announced", "in front of", "publicly",
    "for all to see", "witnessed", "watched", "crowd", "gathered",
)

_NPC_EVENTS = ("npc_action", "npc_dialogue")
_PARTY_EVENTS = ("party_action", "party_dialogue")


def _any_match(content: str, patterns: tuple[re.Pattern[str], ...]) -> bool:
    return any(p.search(content) for p in patterns)


def _dedup(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def _mentioned(content: str, entity: NamedEntity) -> bool:
    return bool(entity.name) and entity.name.lower() in content.lower()


class EventBuilder:
    """Builds StructuredEventData from a generated passage and its scene."""

    def build_from_generation(self, params: GenerationParams) -> StructuredEventData:
        meta = params.metadata

        actor = (
            meta.actor
            if meta and meta.actor
            else self.determine_actor(
                params.generation_type, params.event_type, params.speaker, params.party_members
            )
        )

        if meta and meta.targets:
            targets = list(meta.targets)
        else:
            targets = self.extract_targets(
                params.content, params.event_type, params.npcs_present, params.party_members
            )

        if meta and meta.action and is_valid_action(meta.action):
            action: Action | None = meta.action  # type: ignore[assignment]
        else:
            action = self.infer_action(params.content)

        if meta and meta.witnesses:
            witnesses = [w.id for w in meta.witnesses]
        else:
            witnesses = self.extract_witnesses(
                params.content, actor, targets, params.npcs_present, params.party_members
            )

        base_tags = list(meta.tags) if meta else []
        auto_tags = self.generate_tags(action, params.content, params.event_type) if action else []

        first = targets[0] if targets else None
        return StructuredEventData(
            action=action,
            actor_type=actor.type if actor else None,
            actor_id=actor.id if actor else None,
            target_type=first.type if first else None,
            target_id=first.id if first else None,
            witnesses=_dedup(witnesses),
            tags=_dedup(base_tags + auto_tags),
        )

    # ------------------------------------------------------------------
    # Actor
    # ------------------------------------------------------------------

    def determine_actor(
        self,
        generation_type: GenerationType,
        event_type: EventType,
        speaker: str | None = None,
        party_members: list[NamedEntity] | None = None,
    ) -> ActorRef | None:
        if generation_type == "npc_response" or event_type in _NPC_EVENTS:
            if speaker:
                return ActorRef(type="npc", id=self.normalize_id(speaker))
            return ActorRef(type="npc", id="unknown")

        if event_type in _PARTY_EVENTS:
            if speaker:
                wanted = speaker.lower()
                for member in party_members or []:
                    if member.name.lower() == wanted:
                        return ActorRef(type="character", id=member.id)
            return ActorRef(type="player", id="player")

        if event_type in ("narration", "environment"):
            return ActorRef(type="system", id="narrator")

        if event_type == "dm_injection":
            return ActorRef(type="system", id="dm")

        return None

    @staticmethod
    def normalize_id(name: str) -> str:
        """Lowercase a name and join its alphanumeric runs with underscores."""
        return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")

    # ------------------------------------------------------------------
    # Targets and witnesses
    # ------------------------------------------------------------------

    def extract_targets(
        self,
        content: str,
        event_type: EventType,
        npcs_present: list[NamedEntity] | None = None,
        party_members: list[NamedEntity] | None = None,
    ) -> list[TargetRef]:
        targets: list[TargetRef] = []

        if event_type in _NPC_EVENTS:
            for member in party_members or []:
                if _mentioned(content, member):
                    targets.append(TargetRef(type="character", id=member.id))
            if self.mentions_player(content):
                targets.append(TargetRef(type="player", id="player"))

        if event_type in _PARTY_EVENTS:
            for npc in npcs_present or []:
                if _mentioned(content, npc):
                    targets.append(TargetRef(type="npc", id=npc.id))

        return targets

    def extract_witnesses(
        self,
        content: str,
        actor: ActorRef | None,
        targets: list[TargetRef],
        npcs_present: list[NamedEntity] | None = None,
        party_members: list[NamedEntity] | None = None,
    ) -> list[str]:
        npcs = npcs_present or []
        excluded = {t.id for t in targets}
        if actor:
            excluded.add(actor.id)

        witnesses = [n.id for n in npcs if n.id not in excluded and _mentioned(content, n)]
        witnesses += [
            m.id for m in party_members or [] if m.id not in excluded and _mentioned(content, m)
        ]

        if not witnesses and self.is_public_event(content):
            witnesses = [n.id for n in npcs if n.id not in excluded]

        return _dedup(witnesses)

    @staticmethod
    def mentions_player(content: str) -> bool:
        return bool(_PLAYER_MENTION.search(content))

    @staticmethod
    def is_public_event(content: str) -> bool:
        return _any_match(content, _PUBLIC_CUES)

    # ------------------------------------------------------------------
    # Tags and action inference
    # ------------------------------------------------------------------

    def generate_tags(self, action: Action, content: str, event_type: EventType) -> list[str]:
        """Category, action and event type, then keyword-driven context tags."""
        tags: list[str] = []
        category = get_action_category(action)
        if category:
            tags.append(category)
        tags += [action, event_type]
        tags += [tag for tag, cues in _CONTEXT_TAGS if _any_match(content, cues)]
        return _dedup(tags)

    def infer_action(self, content: str) -> Action | None:
        for action, cues in _ACTION_LADDER:
            if _any_match(content, cues):
                return action
        return None
