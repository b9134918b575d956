"""ActionClassifier — narrative text to one action from the fixed vocabulary.

Two paths:
  classify()               synchronous rule matching over reckoning.patterns.
                           Total: every string, including "", yields a result.
  classify_with_fallback() rule matching first; when no rule clears the
                           threshold and fallback is enabled, asks the
                           language model through ai_classify().

Selection rules:
  - within a category the strictly higher confidence wins (first rule on ties);
  - across categories the strictly higher confidence wins, so on ties the
    earlier category in the precedence order (mercy, violence, honesty,
    social, exploration, character) is kept;
  - the winner is returned only if confidence >= min_rule_confidence.

ai_classify() never raises: provider failure, timeout, unparseable replies and
actions outside the vocabulary all come back as a zero-confidence result with
used_ai_fallback=True. Retrying is the caller's business.
"""

from __future__ import annotations

import asyncio
import json
import logging

from pydantic import BaseModel, Field

from reckoning.actions import ActionCategory, get_action_category, is_valid_action
from reckoning.llm import LLMProvider
from reckoning.models import ClassificationResult, PatternMatch
from reckoning.patterns import PATTERN_TABLES, PatternDef
from reckoning.prompts import classification_output_schema, render_classification_prompt

logger = logging.getLogger(__name__)

DEFAULT_AI_CONFIDENCE = 0.7


class ClassifierSettings(BaseModel):
    min_rule_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    enable_ai_fallback: bool = True
    ai_fallback_timeout_ms: int = Field(default=10_000, gt=0)


class ActionClassifier:
    """Rule-based action classifier with an optional language-model fallback.

    Args:
        settings: Thresholds and fallback options. Defaults to ClassifierSettings().
        llm:      Provider used by ai_classify(). None disables the model path
                  (ai_classify then returns a zero-confidence result).
    """

    def __init__(
        self,
        settings: ClassifierSettings | None = None,
        llm: LLMProvider | None = None,
    ) -> None:
        self.settings = settings or ClassifierSettings()
        self._llm = llm
        self._tables = dict(PATTERN_TABLES)

    # ------------------------------------------------------------------
    # Rule path
    # ------------------------------------------------------------------

    def classify(self, content: str) -> ClassificationResult:
        match = self.find_best_match(content)

        if match and match.confidence >= self.settings.min_rule_confidence:
            logger.debug("classified action=%s confidence=%.2f", match.action, match.confidence)
            return ClassificationResult(
                action=match.action,
                category=get_action_category(match.action),
                confidence=match.confidence,
                used_ai_fallback=False,
                matched_pattern=match.pattern,
            )

        return ClassificationResult(
            confidence=match.confidence if match else 0.0,
            used_ai_fallback=False,
            matched_pattern=match.pattern if match else None,
        )

    def match_category(self, content: str, category: ActionCategory) -> PatternMatch | None:
        """Best rule hit for a single category, or None."""
        return _match_table(content, self._tables[category])

    def find_best_match(self, content: str) -> PatternMatch | None:
        """Best rule hit across all categories, ties resolved by precedence."""
        if not content:
            return None
        best: PatternMatch | None = None
        for _category, table in PATTERN_TABLES:
            match = _match_table(content, table)
            if match and (best is None or match.confidence > best.confidence):
                best = match
        return best

    # ------------------------------------------------------------------
    # Model path
    # ------------------------------------------------------------------

    async def classify_with_fallback(self, content: str) -> ClassificationResult:
        rule_result = self.classify(content)
        if rule_result.action is not None:
            return rule_result
        if not self.settings.enable_ai_fallback:
            return rule_result
        return await self.ai_classify(content)

    async def ai_classify(self, content: str) -> ClassificationResult:
        no_match = ClassificationResult(confidence=0.0, used_ai_fallback=True)

        if self._llm is None or not self._llm.is_available():
            logger.warning("AI classification skipped: no language model configured")
            return no_match

        timeout = self.settings.ai_fallback_timeout_ms / 1000

        try:
            prompt = render_classification_prompt(content)
            result = await asyncio.wait_for(
                self._llm.execute(prompt, classification_output_schema()),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("AI classification timed out after %.1fs", timeout)
            return no_match
        except Exception as e:
            logger.warning("AI classification raised %s: %s", type(e).__name__, e)
            return no_match

        if not result.ok:
            logger.warning("AI classification failed: %s", result.error)
            return no_match

        parsed = _parse_reply(result.content)
        if parsed is None:
            logger.warning("AI classification reply is not valid JSON: %r", result.content)
            return no_match

        action = parsed.get("action")
        if not isinstance(action, str) or not is_valid_action(action):
            logger.warning("AI classification returned unknown action %r", action)
            return no_match

        confidence = parsed.get("confidence")
        if not isinstance(confidence, (int, float)) or isinstance(confidence, bool):
            confidence = DEFAULT_AI_CONFIDENCE

        logger.debug(
            "AI classified action=%s confidence=%.2f duration_ms=%d",
            action, confidence, result.duration_ms,
        )
        return ClassificationResult(
            action=action,
            category=get_action_category(action),
            confidence=confidence,
            used_ai_fallback=True,
        )


def _match_table(content: str, table: tuple[PatternDef, ...]) -> PatternMatch | None:
    best: PatternMatch | None = None
    for rule in table:
        if rule.pattern.search(content):
            if best is None or rule.confidence > best.confidence:
                best = PatternMatch(
                    action=rule.action,
                    confidence=rule.confidence,
                    pattern=rule.pattern.pattern,
                )
    return best


def _parse_reply(text: str) -> dict | None:
    """Parse a JSON object from model output, stripping markdown fences."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [line for line in lines[1:] if not line.strip().startswith("```")]
        cleaned = "\n".join(lines)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None
