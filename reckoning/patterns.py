"""Rule tables for the ActionClassifier.

One table per action category. Each rule is a case-insensitive regex that is
anchored on a word boundary, the action it signals, and a static confidence.
Tables are tuples of immutable records compiled once at import; nothing
mutates them at runtime.

`(\\w+\\s+)*` in a rule allows adjectives between the verb and its object
("spared the fallen guard").

Known blind spot: rules do not scope negation, so "did not kill" still
matches `kill`.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from reckoning.actions import Action, ActionCategory


class PatternDef(NamedTuple):
    pattern: re.Pattern[str]
    action: Action
    confidence: float


def _rule(pattern: str, action: Action, confidence: float) -> PatternDef:
    return PatternDef(re.compile(pattern, re.IGNORECASE), action, confidence)


MERCY_PATTERNS: tuple[PatternDef, ...] = (
    # spare_enemy
    _rule(r"\b(spare[sd]?|sparing)\s+(the\s+)?(\w+\s+)*(enemy|foe|opponent|guard|soldier|bandit|creature)", "spare_enemy", 0.9),
    _rule(r"\b(let|lets|letting)\s+(him|her|them|it)\s+(go|live|escape)", "spare_enemy", 0.85),
    _rule(r"\blower(s|ed|ing)?\s+(your|the|my)\s+(sword|weapon|blade|axe)", "spare_enemy", 0.8),
    _rule(r"\brefuse[sd]?\s+to\s+(kill|strike|finish)", "spare_enemy", 0.85),
    _rule(r"\b(stay(s|ed)?|stayed)\s+(your|my|the|her|his)\s+hand", "spare_enemy", 0.85),
    # show_mercy
    _rule(r"\b(show(s|ed|ing)?|display(s|ed|ing)?)\s+(\w+\s+)*(mercy|compassion|kindness)", "show_mercy", 0.9),
    _rule(r"\b(merciful|mercifully)\b", "show_mercy", 0.75),
    _rule(r"\btake[sn]?\s+pity\b", "show_mercy", 0.85),
    _rule(r"\btook\s+pity\b", "show_mercy", 0.85),
    # forgive
    _rule(r"\b(forgive[sn]?|forgiving|forgave)\b", "forgive", 0.9),
    _rule(r"\bpardon(s|ed|ing)?\b", "forgive", 0.85),
    _rule(r"\blet\s+(it\s+)?go\b", "forgive", 0.6),
    # heal_enemy
    _rule(r"\b(heal(s|ed|ing)?|tend(s|ed|ing)?|bandage[sd]?)\s+(to\s+)?(the\s+)?(\w+\s+)*(enemy|foe|wounded|fallen)", "heal_enemy", 0.9),
    _rule(r"\bhelp(s|ed|ing)?\s+(the\s+)?(enemy|foe)\s+(to\s+)?(his|her|their|its)\s+feet", "heal_enemy", 0.85),
    # release_prisoner
    _rule(r"\b(release[sd]?|releasing|free[sd]?|freeing)\s+(the\s+)?(\w+\s+)*(prisoner|captive|hostage)", "release_prisoner", 0.9),
    _rule(r"\bunlock(s|ed|ing)?\s+(the\s+)?(cell|cage|chains|shackles)", "release_prisoner", 0.8),
    _rule(r"\bset(s|ting)?\s+(the\s+)?(\w+\s+)*(prisoner|captive|hostage)\s+free", "release_prisoner", 0.9),
)

VIOLENCE_PATTERNS: tuple[PatternDef, ...] = (
    # kill
    _rule(r"\b(kill(s|ed|ing)?|slay(s|ed)?|slaying|slew|slain)\b", "kill", 0.9),
    _rule(r"\b(strike[sd]?\s+down|struck\s+down|cuts?\s+down)\b", "kill", 0.85),
    _rule(r"\b(end(s|ed)?|ending)\s+(his|her|their|its)\s+life", "kill", 0.9),
    _rule(r"\bdead\s+before\s+(hitting|reaching)\s+the\s+(ground|floor)", "kill", 0.85),
    # execute
    _rule(r"\b(execute[sd]?|executing|execution)\b", "execute", 0.9),
    _rule(r"\b(behead(s|ed|ing)?|beheading)\b", "execute", 0.9),
    _rule(r"\bfinish(es|ed)?\s+(him|her|them|it)\s+off\b", "execute", 0.85),
    # attack_first
    _rule(r"\b(attack(s|ed|ing)?|strike[sd]?|struck)\s+(first|before)", "attack_first", 0.9),
    _rule(r"\b(initiate[sd]?|initiating)\s+(the\s+)?(attack|combat|fight)", "attack_first", 0.9),
    _rule(r"\bcharge[sd]?\s+(at|toward|into)", "attack_first", 0.8),
    _rule(r"\bwithout\s+warning", "attack_first", 0.75),
    # threaten
    _rule(r"\b(threaten(s|ed|ing)?|intimidate[sd]?|intimidating)\b", "threaten", 0.9),
    _rule(r"\b(point(s|ed|ing)?|level(s|ed|ing)?|raise[sd]?)\s+(\w+\s+)*(sword|blade|weapon|knife|dagger)\s+(at|toward)", "threaten", 0.85),
    _rule(r"\bdemand(s|ed|ing)?\s+(with|through)\s+(violence|force)", "threaten", 0.85),
    # torture
    _rule(r"\b(torture[sd]?|torturing|torment(s|ed|ing)?)\b", "torture", 0.9),
    _rule(r"\b(inflict(s|ed|ing)?)\s+(pain|suffering|agony)", "torture", 0.85),
    _rule(r"\b(make[sd]?|made)\s+(him|her|them|it)\s+suffer", "torture", 0.85),
)

HONESTY_PATTERNS: tuple[PatternDef, ...] = (
    # tell_truth
    _rule(r"\b(tell(s|ing)?|told)\s+(the\s+)?truth", "tell_truth", 0.9),
    _rule(r"\b(honest(ly)?|truthful(ly)?)\s+(admit|answer|respond|reply)", "tell_truth", 0.85),
    _rule(r"\bspeak(s|ing)?\s+(honestly|truthfully)", "tell_truth", 0.85),
    # confess
    _rule(r"\b(confess(es|ed|ing)?|confession)\b", "confess", 0.9),
    _rule(r"\badmit(s|ted|ting)?\s+(to|the|your|my)\b", "confess", 0.85),
    _rule(r"\b(comes?|came)\s+clean\b", "confess", 0.85),
    # reveal_secret
    _rule(r"\b(reveal(s|ed|ing)?|disclose[sd]?|divulge[sd]?)\s+(the\s+)?secret", "reveal_secret", 0.9),
    _rule(r"\btell(s|ing)?\s+(the\s+)?secret", "reveal_secret", 0.85),
    _rule(r"\bshare[sd]?\s+(the\s+)?(hidden|secret|private)\s+(knowledge|information)", "reveal_secret", 0.85),
    # keep_promise
    _rule(r"\b(keep(s|ing)?|kept)\s+(the\s+|your\s+|my\s+)?promise", "keep_promise", 0.9),
    _rule(r"\bhonor(s|ed|ing)?\s+(the\s+|your\s+|my\s+|his\s+|her\s+|their\s+)?(promise|word|oath|vow)", "keep_promise", 0.9),
    _rule(r"\btrue\s+to\s+(your|my|his|her|their)\s+word", "keep_promise", 0.85),
    # lie
    _rule(r"\b(lie[sd]?|lying|lied)\s+(to|about)\b", "lie", 0.9),
    _rule(r"\btell(s|ing)?\s+(a\s+)?lie", "lie", 0.9),
    _rule(r"\bspeak(s|ing)?\s+false(ly|hood)?", "lie", 0.85),
    # deceive
    _rule(r"\b(deceive[sd]?|deceiving|deception)\b", "deceive", 0.9),
    _rule(r"\b(trick(s|ed|ing)?|fool(s|ed|ing)?|dupe[sd]?)\b", "deceive", 0.85),
    _rule(r"\b(mislead(s|ing)?|misled)\b", "deceive", 0.85),
    # break_promise
    _rule(r"\b(break(s|ing)?|broke|broken)\s+(the\s+|your\s+|my\s+)?promise", "break_promise", 0.9),
    _rule(r"\b(betray(s|ed|ing)?)\s+(the\s+|your\s+|my\s+|his\s+|her\s+|their\s+)?(trust|oath|vow)", "break_promise", 0.85),
    _rule(r"\bgo(es|ing)?\s+back\s+on\s+(your|my|his|her|their)\s+word", "break_promise", 0.85),
    _rule(r"\bwent\s+back\s+on\s+(your|my|his|her|their)\s+word", "break_promise", 0.85),
    # withhold_info
    _rule(r"\b(withhold(s|ing)?|withheld)\s+(the\s+)?(information|truth|secret)", "withhold_info", 0.9),
    _rule(r"\b(hide(s|ing)?|hid|hidden)\s+(the\s+)?truth", "withhold_info", 0.85),
    _rule(r"\bkeep(s|ing)?\s+(it|this)\s+(a\s+)?secret", "withhold_info", 0.8),
    _rule(r"\bsay(s|ing)?\s+nothing\b", "withhold_info", 0.7),
)

SOCIAL_PATTERNS: tuple[PatternDef, ...] = (
    # help
    _rule(r"\b(help(s|ed|ing)?|assist(s|ed|ing)?|aid(s|ed|ing)?)\b", "help", 0.8),
    _rule(r"\b(lend(s|ing)?|lent)\s+(a\s+)?hand", "help", 0.85),
    _rule(r"\bcomes?\s+to\s+(the\s+)?(aid|rescue|assistance)", "help", 0.85),
    # betray
    _rule(r"\b(betray(s|ed|ing)?|betrayal)\b", "betray", 0.9),
    _rule(r"\b(stab(s|bed|bing)?)\s+(\w+\s+)*(in\s+the\s+)?back", "betray", 0.9),
    _rule(r"\bturn(s|ed|ing)?\s+(on|against)\s+(your|my|his|her|their)\s+(ally|friend|companion)", "betray", 0.9),
    # befriend
    _rule(r"\b(befriend(s|ed|ing)?|friendship)\b", "befriend", 0.9),
    _rule(r"\b(make|become|became)\s+(friends|allies)", "befriend", 0.85),
    _rule(r"\bextend(s|ed|ing)?\s+(the\s+)?hand\s+of\s+friendship", "befriend", 0.9),
    # insult
    _rule(r"\b(insult(s|ed|ing)?|mock(s|ed|ing)?|ridicule[sd]?)\b", "insult", 0.9),
    _rule(r"\b(hurl(s|ed|ing)?|spit(s|ting)?)\s+(an?\s+)?(insult|curse|profanity)", "insult", 0.85),
    _rule(r"\bcall(s|ed|ing)?\s+(him|her|them|it)\s+(a\s+)?(fool|coward|idiot)", "insult", 0.8),
    # intimidate
    _rule(r"\b(intimidate[sd]?|intimidating|intimidation)\b", "intimidate", 0.9),
    _rule(r"\b(loom(s|ed|ing)?|tower(s|ed|ing)?)\s+(over|above)", "intimidate", 0.75),
    _rule(r"\bglar(e[sd]?|ing)\s+(menacingly|threateningly)", "intimidate", 0.8),
    # persuade
    _rule(r"\b(persuade[sd]?|persuading|persuasion)\b", "persuade", 0.9),
    _rule(r"\b(convince[sd]?|convincing)\b", "persuade", 0.85),
    _rule(r"\b(talk(s|ed|ing)?)\s+(\w+\s+)*(into|out\s+of)", "persuade", 0.85),
    # bribe
    _rule(r"\b(bribe[sd]?|bribing|bribery)\b", "bribe", 0.9),
    _rule(r"\boffer(s|ed|ing)?\s+(gold|coin|money|payment)\s+(for|to)", "bribe", 0.85),
    _rule(r"\bgrease(s|d)?\s+(the\s+)?palm", "bribe", 0.9),
)

EXPLORATION_PATTERNS: tuple[PatternDef, ...] = (
    # enter_location
    _rule(r"\b(enter(s|ed|ing)?)\s+(the\s+)?(\w+\s+)*(cave|dungeon|room|tavern|inn|castle|town|village|forest|temple|chamber|hall)", "enter_location", 0.85),
    _rule(r"\b(arrive[sd]?)\s+(at|in)\s+(the\s+)?(\w+\s+)*(cave|dungeon|room|tavern|inn|castle|town|village|forest|temple)", "enter_location", 0.85),
    _rule(r"\b(step(s|ped|ping)?|walk(s|ed|ing)?)\s+(into|inside|through\s+the\s+door)", "enter_location", 0.8),
    _rule(r"\bcross(es|ed|ing)?\s+the\s+threshold", "enter_location", 0.85),
    # examine
    _rule(r"\b(examine[sd]?|examining|inspect(s|ed|ing)?|study|studies|studied|studying)\b", "examine", 0.85),
    _rule(r"\b(look(s|ed|ing)?|peer(s|ed|ing)?)\s+(closely|carefully)\s+(at|upon)", "examine", 0.8),
    _rule(r"\binvestigate[sd]?\b", "examine", 0.85),
    # search
    _rule(r"\b(search(es|ed|ing)?|rummage[sd]?|scour(s|ed|ing)?)\b", "search", 0.85),
    _rule(r"\b(look(s|ed|ing)?)\s+(around|through|for)", "search", 0.75),
    _rule(r"\brifle[sd]?\s+through", "search", 0.85),
    # steal
    _rule(r"\b(steal(s|ing)?|stole|stolen|theft)\b", "steal", 0.9),
    _rule(r"\b(pick(s|ed|ing)?)\s+(\w+\s+)*pocket", "steal", 0.9),
    _rule(r"\b(take(s|ing)?|took)\s+(\w+\s+)*without\s+(permission|asking)", "steal", 0.85),
    _rule(r"\b(pilfer(s|ed|ing)?|purloin(s|ed|ing)?|filch(es|ed|ing)?)\b", "steal", 0.9),
    # unlock
    _rule(r"\b(unlock(s|ed|ing)?)\s+(the\s+)?(\w+\s+)*(door|chest|gate|box|container)", "unlock", 0.9),
    _rule(r"\b(pick(s|ed|ing)?)\s+(the\s+)?lock", "unlock", 0.9),
    _rule(r"\bopen(s|ed|ing)?\s+(the\s+)?(locked|sealed)\s+(door|chest|gate)", "unlock", 0.85),
    _rule(r"\buse[sd]?\s+(the\s+)?key", "unlock", 0.8),
    # destroy
    _rule(r"\b(destroy(s|ed|ing)?|destruction|smash(es|ed|ing)?|shatter(s|ed|ing)?)\b", "destroy", 0.9),
    _rule(r"\b(break(s|ing)?|broke|broken)\s+(down|apart|through|open)", "destroy", 0.85),
    _rule(r"\bdemolish(es|ed|ing)?\b", "destroy", 0.9),
)

CHARACTER_PATTERNS: tuple[PatternDef, ...] = (
    # level_up
    _rule(r"\b(level(s|ed|ing)?\s+up|gain(s|ed|ing)?\s+(a\s+)?level)\b", "level_up", 0.9),
    _rule(r"\b(grow(s|n)?|grew)\s+(stronger|more\s+powerful)", "level_up", 0.8),
    _rule(r"\badvance(s|d|ing)?\s+in\s+(skill|power|ability)", "level_up", 0.8),
    # acquire_item
    _rule(r"\b(acquire[sd]?|acquiring|obtain(s|ed|ing)?|receive[sd]?)\s+(a\s+|the\s+)?(\w+\s+)*(item|weapon|armor|artifact|sword|staff|shield|ring|amulet)", "acquire_item", 0.85),
    _rule(r"\b(pick(s|ed|ing)?|take(s|ing)?|took)\s+up\s+(the\s+)?(\w+\s+)*(sword|weapon|item|artifact|staff)", "acquire_item", 0.8),
    _rule(r"\b(find(s|ing)?|found)\s+(a\s+|the\s+)?(\w+\s+)*(valuable|magical|enchanted)", "acquire_item", 0.75),
    _rule(r"\badd(s|ed|ing)?\s+(\w+\s+)*to\s+(your\s+|my\s+|his\s+|her\s+|the\s+)?(inventory|pack|bag)", "acquire_item", 0.85),
    # use_ability
    _rule(r"\b(use[sd]?|using|cast(s|ing)?|invoke[sd]?)\s+(a\s+|the\s+|your\s+|my\s+|his\s+|her\s+)?(\w+\s+)*(ability|spell|power|skill)", "use_ability", 0.85),
    _rule(r"\bactivate[sd]?\s+(the\s+)?(ability|power|skill)", "use_ability", 0.85),
    _rule(r"\bchannel(s|ed|ing)?\s+(your|my|his|her|their)\s+(power|energy|magic)", "use_ability", 0.8),
    # rest
    _rule(r"\b(rest(s|ed|ing)?|sleep(s|ing)?|slept)\b", "rest", 0.85),
    _rule(r"\b(take(s|ing)?|took)\s+(a\s+)?(short\s+|long\s+)?rest", "rest", 0.9),
    _rule(r"\b(makes?|made|making)\s+camp", "rest", 0.85),
    _rule(r"\bset(s|ting)?\s+up\s+camp", "rest", 0.85),
    # pray
    _rule(r"\b(pray(s|ed|ing)?|prayer)\b", "pray", 0.9),
    _rule(r"\bkneel(s|ed|ing)?\s+(in|at|before)\s+(prayer|the\s+altar|the\s+shrine)", "pray", 0.9),
    _rule(r"\boffer(s|ed|ing)?\s+(a\s+)?prayer", "pray", 0.9),
    # meditate
    _rule(r"\b(meditate[sd]?|meditating|meditation)\b", "meditate", 0.9),
    _rule(r"\benter(s|ed|ing)?\s+(a\s+)?(\w+\s+)?trance", "meditate", 0.85),
    _rule(r"\b(focus(es|ed|ing)?|center(s|ed|ing)?)\s+(your|my|his|her|their)\s+(mind|thoughts)", "meditate", 0.8),
)

# Iteration order is the cross-category tie-break precedence.
PATTERN_TABLES: tuple[tuple[ActionCategory, tuple[PatternDef, ...]], ...] = (
    ("mercy", MERCY_PATTERNS),
    ("violence", VIOLENCE_PATTERNS),
    ("honesty", HONESTY_PATTERNS),
    ("social", SOCIAL_PATTERNS),
    ("exploration", EXPLORATION_PATTERNS),
    ("character", CHARACTER_PATTERNS),
)
