"""FastMCP server exposing the action classifier as MCP tools.

Tools:
  - classify_action(content, fallback)  — classify narrative text
  - list_actions()                      — the vocabulary grouped by category

The classifier is module state replaced via set_classifier() for tests, or
built from the data directory config when run as __main__.

Usage:
    python -m reckoning.mcp_server
"""

from mcp.server.fastmcp import FastMCP

from reckoning.actions import ACTION_CATEGORIES, CATEGORY_TO_ACTIONS
from reckoning.classifier import ActionClassifier

mcp = FastMCP("reckoning-actions")

_classifier = ActionClassifier()


def set_classifier(classifier: ActionClassifier) -> None:
    """Replace the active classifier (used in tests)."""
    global _classifier
    _classifier = classifier


@mcp.tool()
async def classify_action(content: str, fallback: bool = False) -> dict:
    """Classify narrative text into one action from the fixed vocabulary."""
    if fallback:
        result = await _classifier.classify_with_fallback(content)
    else:
        result = _classifier.classify(content)
    return result.model_dump()


@mcp.tool()
def list_actions() -> dict[str, list[str]]:
    """Return every action grouped by category, in precedence order."""
    return {category: list(CATEGORY_TO_ACTIONS[category]) for category in ACTION_CATEGORIES}


if __name__ == "__main__":
    import os
    from pathlib import Path

    from dotenv import load_dotenv

    from reckoning import config

    load_dotenv(Path(__file__).parent.parent / ".env")
    data_dir = Path(os.getenv("DATA_DIR", str(Path(__file__).parent.parent / "data")))
    cfg = config.get_config(data_dir)
    set_classifier(ActionClassifier(config.classifier_settings(cfg), config.build_llm(cfg)))
    mcp.run()
