import asyncio
import itertools
from pathlib import Path

import pytest

from reckoning.llm import LLMResult


class StubLLM:
    """Scripted LLMProvider: returns queued results in order."""

    def __init__(self, *replies: LLMResult, available: bool = True, delay: float = 0.0) -> None:
        self._replies = list(replies)
        self._available = available
        self._delay = delay
        self.prompts: list[str] = []
        self.schemas: list[dict | None] = []

    def is_available(self) -> bool:
        return self._available

    async def execute(self, prompt: str, output_schema: dict | None = None) -> LLMResult:
        self.prompts.append(prompt)
        self.schemas.append(output_schema)
        if self._delay:
            await asyncio.sleep(self._delay)
        return self._replies.pop(0)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Per-test data directory."""
    return tmp_path / "data"


@pytest.fixture
def clock():
    """Strictly increasing fake timestamps."""
    counter = itertools.count()
    return lambda: f"2024-01-01T00:00:00.{next(counter):06d}+00:00"
