"""JSON file storage base.

All state lives in flat JSON files under a configurable base directory. There
is no database or ORM: each repository owns one file per game and reads and
writes it through the helpers below.

Directory layout:

    {data_dir}/
      config.json
      games/
        {game_id}/
          evolutions.json      ← list of PendingEvolution records
          notifications.json   ← list of EmergenceNotification records
          relationships.json   ← list of Relationship records
          traits.json          ← list of Trait records
"""

from __future__ import annotations

import json
import logging
import re
import shutil
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_GAME_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class InvalidGameIdError(ValueError):
    """A game id that is not a single plain path segment."""


def check_game_id(game_id: str) -> str:
    if not isinstance(game_id, str) or not _GAME_ID.match(game_id):
        raise InvalidGameIdError(f"Invalid game id: {game_id!r}")
    return game_id


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class JsonStore:
    """Base for repositories that keep one JSON list per game.

    Args:
        data_dir: Root of the data directory. Created if missing.
        clock:    Returns the current timestamp as an ISO-8601 string.
                  Tests pass a fixed or stepping clock.
    """

    filename: str = ""

    def __init__(self, data_dir: Path, clock: Callable[[], str] = utc_now) -> None:
        self._base = Path(data_dir)
        self._games_root = self._base / "games"
        self._games_root.mkdir(parents=True, exist_ok=True)
        self._clock = clock

    # ------------------------------------------------------------------
    # Internal path helpers
    # ------------------------------------------------------------------

    def _game_dir(self, game_id: str) -> Path:
        return self._games_root / check_game_id(game_id)

    def _game_file(self, game_id: str) -> Path:
        return self._game_dir(game_id) / self.filename

    def _game_ids(self) -> list[str]:
        return sorted(
            p.name for p in self._games_root.iterdir() if p.is_dir() and _GAME_ID.match(p.name)
        )

    def _read_json(self, path: Path) -> Any:
        return json.loads(path.read_text())

    def _write_json(self, path: Path, data: Any) -> None:
        # Write-then-rename so a crash never leaves a half-written file.
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2))
        tmp.replace(path)

    def _load_rows(self, game_id: str) -> list[dict[str, Any]]:
        path = self._game_file(game_id)
        if not path.exists():
            return []
        return self._read_json(path)

    def _save_rows(self, game_id: str, rows: list[dict[str, Any]]) -> None:
        self._write_json(self._game_file(game_id), rows)

    def _locate(self, record_id: str) -> tuple[str, list[dict[str, Any]], int] | None:
        """Find a row by id across all games. Returns (game_id, rows, index)."""
        for game_id in self._game_ids():
            rows = self._load_rows(game_id)
            for i, row in enumerate(rows):
                if row.get("id") == record_id:
                    return game_id, rows, i
        return None

    def _now(self) -> str:
        return self._clock()

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    # ------------------------------------------------------------------
    # Shared row operations
    # ------------------------------------------------------------------

    def delete(self, record_id: str) -> None:
        found = self._locate(record_id)
        if found is None:
            return
        game_id, rows, i = found
        del rows[i]
        self._save_rows(game_id, rows)

    def delete_by_game(self, game_id: str) -> None:
        path = self._game_file(game_id)
        if path.exists():
            path.unlink()
            logger.info("deleted %s for game %s", self.filename, game_id)


def delete_game(data_dir: Path, game_id: str) -> None:
    """Remove every stored record for a game."""
    game_dir = Path(data_dir) / "games" / check_game_id(game_id)
    if game_dir.exists():
        shutil.rmtree(game_dir)
        logger.info("deleted game data for %s", game_id)


class InvalidTransitionError(ValueError):
    """Raised when resolving or editing a record that is no longer pending."""
