"""Action vocabulary — the fixed set of narrative verbs and their categories.

The vocabulary is a contract shared by the rule tables (reckoning.patterns),
the language-model prompt and output schema (reckoning.classifier), and any
reporting consumer. Adding or renaming an action means updating all three.

Category order is significant: it is the tie-break precedence used when two
categories match with the same confidence.
"""

from __future__ import annotations

from typing import Literal, get_args

ActionCategory = Literal[
    "mercy",
    "violence",
    "honesty",
    "social",
    "exploration",
    "character",
]

Action = Literal[
    # mercy
    "spare_enemy",
    "show_mercy",
    "forgive",
    "heal_enemy",
    "release_prisoner",
    # violence
    "kill",
    "execute",
    "attack_first",
    "threaten",
    "torture",
    # honesty
    "tell_truth",
    "confess",
    "reveal_secret",
    "keep_promise",
    "lie",
    "deceive",
    "break_promise",
    "withhold_info",
    # social
    "help",
    "betray",
    "befriend",
    "insult",
    "intimidate",
    "persuade",
    "bribe",
    # exploration
    "enter_location",
    "examine",
    "search",
    "steal",
    "unlock",
    "destroy",
    # character
    "level_up",
    "acquire_item",
    "use_ability",
    "rest",
    "pray",
    "meditate",
]

ACTION_CATEGORIES: tuple[ActionCategory, ...] = get_args(ActionCategory)

CATEGORY_TO_ACTIONS: dict[ActionCategory, tuple[Action, ...]] = {
    "mercy": ("spare_enemy", "show_mercy", "forgive", "heal_enemy", "release_prisoner"),
    "violence": ("kill", "execute", "attack_first", "threaten", "torture"),
    "honesty": (
        "tell_truth", "confess", "reveal_secret", "keep_promise",
        "lie", "deceive", "break_promise", "withhold_info",
    ),
    "social": ("help", "betray", "befriend", "insult", "intimidate", "persuade", "bribe"),
    "exploration": ("enter_location", "examine", "search", "steal", "unlock", "destroy"),
    "character": ("level_up", "acquire_item", "use_ability", "rest", "pray", "meditate"),
}

ALL_ACTIONS: tuple[Action, ...] = tuple(
    action for category in ACTION_CATEGORIES for action in CATEGORY_TO_ACTIONS[category]
)

ACTION_TO_CATEGORY: dict[Action, ActionCategory] = {
    action: category
    for category, actions in CATEGORY_TO_ACTIONS.items()
    for action in actions
}

CATEGORY_DESCRIPTIONS: dict[ActionCategory, str] = {
    "mercy": "compassionate actions",
    "violence": "aggressive actions",
    "honesty": "truth and deception",
    "social": "interpersonal actions",
    "exploration": "world interaction",
    "character": "development",
}

ACTION_DESCRIPTIONS: dict[Action, str] = {
    "spare_enemy": "Choosing not to kill a defeated foe",
    "show_mercy": "Displaying compassion or kindness",
    "forgive": "Pardoning someone for wrongdoing",
    "heal_enemy": "Tending to a wounded enemy",
    "release_prisoner": "Freeing a captive",
    "kill": "Taking a life",
    "execute": "Performing a deliberate killing",
    "attack_first": "Initiating combat",
    "threaten": "Intimidating with violence",
    "torture": "Inflicting pain deliberately",
    "tell_truth": "Being honest",
    "confess": "Admitting wrongdoing",
    "reveal_secret": "Sharing hidden information",
    "keep_promise": "Honoring a commitment",
    "lie": "Speaking falsehood",
    "deceive": "Misleading someone",
    "break_promise": "Failing to honor a commitment",
    "withhold_info": "Hiding information",
    "help": "Assisting someone",
    "betray": "Turning against an ally",
    "befriend": "Forming a friendship",
    "insult": "Verbally attacking someone",
    "intimidate": "Using presence to cow",
    "persuade": "Convincing through argument",
    "bribe": "Offering payment for favors",
    "enter_location": "Going to a new place",
    "examine": "Looking closely at something",
    "search": "Looking for something",
    "steal": "Taking without permission",
    "unlock": "Opening something locked",
    "destroy": "Breaking or demolishing",
    "level_up": "Growing in power",
    "acquire_item": "Getting new equipment",
    "use_ability": "Employing a skill or power",
    "rest": "Taking time to recover",
    "pray": "Offering devotion",
    "meditate": "Focusing the mind",
}


def get_action_category(action: str) -> ActionCategory | None:
    """Return the category of an action, or None if the action is unknown."""
    return ACTION_TO_CATEGORY.get(action)  # type: ignore[arg-type]


def is_valid_action(action: str) -> bool:
    return action in ACTION_TO_CATEGORY


def is_valid_action_category(category: str) -> bool:
    return category in CATEGORY_TO_ACTIONS


def is_action_in_category(action: str, category: ActionCategory) -> bool:
    return action in CATEGORY_TO_ACTIONS.get(category, ())
