"""PendingEvolutionQueue — proposed trait and relationship changes awaiting review.

Nothing in the world state changes when a proposal is queued. A narrator later
resolves it (approved, edited or refused); reckoning.evolution applies approved
changes. Records leave `pending` exactly once.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Literal

from pydantic import Field, TypeAdapter

from reckoning.models import (
    EntityType,
    EvolutionStatus,
    PendingEvolution,
    RelationshipEvolutionInput,
    TraitEvolutionInput,
)

from .core import InvalidTransitionError, JsonStore

logger = logging.getLogger(__name__)

EvolutionInput = Annotated[
    TraitEvolutionInput | RelationshipEvolutionInput,
    Field(discriminator="evolution_type"),
]
_input_adapter: TypeAdapter[TraitEvolutionInput | RelationshipEvolutionInput] = TypeAdapter(
    EvolutionInput
)

ResolvedStatus = Literal["approved", "edited", "refused"]

UPDATABLE_FIELDS = (
    "trait",
    "target_type",
    "target_id",
    "dimension",
    "old_value",
    "new_value",
    "reason",
    "dm_notes",
)


def _ordered(rows: list[PendingEvolution]) -> list[PendingEvolution]:
    return sorted(rows, key=lambda e: (e.turn, e.created_at))


class PendingEvolutionQueue(JsonStore):
    filename = "evolutions.json"

    def create(
        self, data: TraitEvolutionInput | RelationshipEvolutionInput | dict[str, Any]
    ) -> PendingEvolution:
        """Validate and persist a proposal as `pending`.

        Raises pydantic.ValidationError when the payload does not match the
        evolution type.
        """
        proposal = data if not isinstance(data, dict) else _input_adapter.validate_python(data)
        evolution = PendingEvolution(
            id=self._new_id(),
            status="pending",
            created_at=self._now(),
            **proposal.model_dump(),
        )
        rows = self._load_rows(evolution.game_id)
        rows.append(evolution.model_dump())
        self._save_rows(evolution.game_id, rows)
        logger.info(
            "queued %s for %s/%s (game %s)",
            evolution.evolution_type, evolution.entity_type, evolution.entity_id,
            evolution.game_id,
        )
        return evolution

    def find_by_id(self, evolution_id: str) -> PendingEvolution | None:
        found = self._locate(evolution_id)
        if found is None:
            return None
        _game_id, rows, i = found
        return PendingEvolution.model_validate(rows[i])

    def find_by_game(self, game_id: str) -> list[PendingEvolution]:
        return _ordered([PendingEvolution.model_validate(r) for r in self._load_rows(game_id)])

    def find_pending(
        self, game_id: str, status_filter: EvolutionStatus = "pending"
    ) -> list[PendingEvolution]:
        return [e for e in self.find_by_game(game_id) if e.status == status_filter]

    def find_by_entity(
        self, game_id: str, entity_type: EntityType, entity_id: str
    ) -> list[PendingEvolution]:
        return [
            e for e in self.find_by_game(game_id)
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    def resolve(
        self, evolution_id: str, status: ResolvedStatus, dm_notes: str | None = None
    ) -> PendingEvolution | None:
        """Move a pending record to a terminal status.

        Returns None for an unknown id. Raises InvalidTransitionError when the
        record was already resolved.
        """
        if status not in ("approved", "edited", "refused"):
            raise ValueError(f"Cannot resolve to status {status!r}")
        found = self._locate(evolution_id)
        if found is None:
            return None
        game_id, rows, i = found
        current = PendingEvolution.model_validate(rows[i])
        if current.status != "pending":
            raise InvalidTransitionError(
                f"Evolution {evolution_id} is already {current.status}"
            )
        resolved = current.model_copy(
            update={"status": status, "dm_notes": dm_notes, "resolved_at": self._now()}
        )
        rows[i] = resolved.model_dump()
        self._save_rows(game_id, rows)
        logger.info("evolution %s %s", evolution_id, status)
        return resolved

    def update(self, evolution_id: str, fields: dict[str, Any]) -> PendingEvolution | None:
        """Merge fields over a pending record. Omitted or None fields keep their value.

        The merged record is revalidated, so an edit cannot break the payload
        shape of its evolution type.
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        found = self._locate(evolution_id)
        if found is None:
            return None
        game_id, rows, i = found
        if rows[i]["status"] != "pending":
            raise InvalidTransitionError(
                f"Evolution {evolution_id} is already {rows[i]['status']}"
            )
        merged = dict(rows[i])
        for key, value in fields.items():
            if value is not None:
                merged[key] = value
        updated = PendingEvolution.model_validate(merged)
        rows[i] = updated.model_dump()
        self._save_rows(game_id, rows)
        return updated
