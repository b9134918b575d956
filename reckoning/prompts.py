"""Handlebars prompt rendering for the classifier fallback."""

from collections.abc import Callable
from typing import Any

import pybars

from reckoning.actions import (
    ACTION_CATEGORIES,
    ACTION_DESCRIPTIONS,
    ALL_ACTIONS,
    CATEGORY_DESCRIPTIONS,
    CATEGORY_TO_ACTIONS,
)

_compiler = pybars.Compiler()
_compiled: dict[str, Callable] = {}


class PromptError(Exception):
    """A prompt template could not be compiled or rendered."""


CLASSIFICATION_PROMPT = """\
Classify the following narrative content into one of these standardized actions.

Action categories and their actions:
{{#each categories}}

{{upper name}} ({{description}}):
{{#each actions}}
- {{name}}: {{description}}
{{/each}}
{{/each}}

Content to classify:
\"\"\"
{{{content}}}
\"\"\"

Respond with JSON containing the action that best describes the main action in this content.\
"""


# ── Custom Handlebars helpers ────────────────────────────


def _helper_upper(this, value):
    """{{upper name}}: uppercase a string."""
    return str(value).upper()


_HELPERS: dict[str, Callable] = {
    "upper": _helper_upper,
}


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Render a Handlebars template, compiling each distinct source once."""
    try:
        compiled = _compiled.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _compiled[template_str] = compiled
        return str(compiled(context, helpers=_HELPERS))
    except Exception as e:
        raise PromptError(f"Cannot render prompt template: {e}") from e


def build_classification_context(content: str) -> dict[str, Any]:
    """Template variables for CLASSIFICATION_PROMPT."""
    return {
        "content": content,
        "categories": [
            {
                "name": category,
                "description": CATEGORY_DESCRIPTIONS[category],
                "actions": [
                    {"name": action, "description": ACTION_DESCRIPTIONS[action]}
                    for action in CATEGORY_TO_ACTIONS[category]
                ],
            }
            for category in ACTION_CATEGORIES
        ],
    }


def classification_output_schema() -> dict[str, Any]:
    """JSON schema constraining the model reply to the closed vocabulary."""
    return {
        "name": "action_classification",
        "schema": {
            "type": "object",
            "properties": {
                "action": {
                    "type": "string",
                    "enum": list(ALL_ACTIONS),
                    "description": "The standardized action that best describes the content",
                },
                "confidence": {
                    "type": "number",
                    "minimum": 0,
                    "maximum": 1,
                    "description": "Confidence score from 0 to 1",
                },
                "reasoning": {
                    "type": "string",
                    "description": "Brief explanation of why this action was chosen",
                },
            },
            "required": ["action", "confidence"],
        },
    }


def render_classification_prompt(content: str) -> str:
    return render_prompt(CLASSIFICATION_PROMPT, build_classification_context(content))
