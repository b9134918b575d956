"""Emergence notifications: persistence plus the event-processing service.

The service turns committed events into narrator-facing notifications:

    event → EmergenceObserver → opportunities
          → skip if a pending notification exists for (game, entity, type)
          → persist as pending → broadcast "emergence_detected"

The duplicate check is read-then-write. Callers must process events of one
game in commit order, one at a time.
"""

from __future__ import annotations

import logging
from typing import Literal, Protocol

from reckoning.broadcast import BroadcastManager
from reckoning.models import (
    CanonicalEvent,
    EmergenceDetectionResult,
    EmergenceNotification,
    EmergenceOpportunity,
    EmergenceType,
)
from reckoning.storage.core import InvalidTransitionError, JsonStore, utc_now

logger = logging.getLogger(__name__)

ResolvedNotificationStatus = Literal["acknowledged", "dismissed"]


class Observer(Protocol):
    def on_event_committed(self, event: CanonicalEvent) -> EmergenceDetectionResult: ...


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------

class EmergenceNotificationRepository(JsonStore):
    filename = "notifications.json"

    def _newest_first(self, game_id: str) -> list[EmergenceNotification]:
        rows = [EmergenceNotification.model_validate(r) for r in self._load_rows(game_id)]
        # Reversed first so later inserts stay ahead on equal timestamps.
        return sorted(reversed(rows), key=lambda n: n.created_at, reverse=True)

    def create(self, game_id: str, opportunity: EmergenceOpportunity) -> EmergenceNotification:
        notification = EmergenceNotification(
            id=self._new_id(),
            game_id=game_id,
            emergence_type=opportunity.type,
            entity=opportunity.entity,
            confidence=opportunity.confidence,
            reason=opportunity.reason,
            triggering_event_id=opportunity.triggering_event_id,
            contributing_factors=opportunity.contributing_factors,
            created_at=self._now(),
        )
        rows = self._load_rows(game_id)
        rows.append(notification.model_dump())
        self._save_rows(game_id, rows)
        logger.info(
            "notification %s: %s %s (game %s)",
            notification.id, opportunity.type, opportunity.entity.id, game_id,
        )
        return notification

    def find_by_id(self, notification_id: str) -> EmergenceNotification | None:
        found = self._locate(notification_id)
        if found is None:
            return None
        _game_id, rows, i = found
        return EmergenceNotification.model_validate(rows[i])

    def find_pending(self, game_id: str) -> list[EmergenceNotification]:
        return [n for n in self._newest_first(game_id) if n.status == "pending"]

    def find_by_game(self, game_id: str, limit: int | None = None) -> list[EmergenceNotification]:
        notifications = self._newest_first(game_id)
        return notifications[:limit] if limit is not None else notifications

    def resolve(
        self,
        notification_id: str,
        status: ResolvedNotificationStatus,
        dm_notes: str | None = None,
    ) -> EmergenceNotification | None:
        """Returns None for an unknown id; raises InvalidTransitionError if already resolved."""
        if status not in ("acknowledged", "dismissed"):
            raise ValueError(f"Cannot resolve notification to status {status!r}")
        found = self._locate(notification_id)
        if found is None:
            return None
        game_id, rows, i = found
        current = EmergenceNotification.model_validate(rows[i])
        if current.status != "pending":
            raise InvalidTransitionError(
                f"Notification {notification_id} is already {current.status}"
            )
        resolved = current.model_copy(
            update={"status": status, "dm_notes": dm_notes, "resolved_at": self._now()}
        )
        rows[i] = resolved.model_dump()
        self._save_rows(game_id, rows)
        return resolved

    def exists_similar(self, game_id: str, entity_id: str, emergence_type: EmergenceType) -> bool:
        """True when a pending notification already covers this entity and type."""
        return any(
            n["status"] == "pending"
            and n["entity"]["id"] == entity_id
            and n["emergence_type"] == emergence_type
            for n in self._load_rows(game_id)
        )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class EmergenceNotificationService:
    def __init__(
        self,
        observer: Observer,
        repository: EmergenceNotificationRepository,
        broadcaster: BroadcastManager,
    ) -> None:
        self._observer = observer
        self._repo = repository
        self._broadcaster = broadcaster

    def process_event(self, event: CanonicalEvent) -> list[EmergenceNotification]:
        result = self._observer.on_event_committed(event)
        created: list[EmergenceNotification] = []

        for opportunity in result.opportunities:
            if self._repo.exists_similar(event.game_id, opportunity.entity.id, opportunity.type):
                logger.debug(
                    "suppressed duplicate %s for %s (game %s)",
                    opportunity.type, opportunity.entity.id, event.game_id,
                )
                continue

            notification = self._repo.create(event.game_id, opportunity)
            created.append(notification)
            self._broadcaster.broadcast(
                event.game_id,
                {
                    "type": "emergence_detected",
                    "timestamp": utc_now(),
                    "opportunity": opportunity.model_dump(),
                    "notification_id": notification.id,
                },
            )

        return created

    def get_pending_notifications(self, game_id: str) -> list[EmergenceNotification]:
        return self._repo.find_pending(game_id)

    def get_notifications(
        self, game_id: str, limit: int | None = None
    ) -> list[EmergenceNotification]:
        return self._repo.find_by_game(game_id, limit)

    def get_notification(self, notification_id: str) -> EmergenceNotification | None:
        return self._repo.find_by_id(notification_id)

    def acknowledge(
        self, notification_id: str, dm_notes: str | None = None
    ) -> EmergenceNotification | None:
        return self._repo.resolve(notification_id, "acknowledged", dm_notes)

    def dismiss(
        self, notification_id: str, dm_notes: str | None = None
    ) -> EmergenceNotification | None:
        return self._repo.resolve(notification_id, "dismissed", dm_notes)

    def resolve(
        self,
        notification_id: str,
        status: ResolvedNotificationStatus,
        dm_notes: str | None = None,
    ) -> EmergenceNotification | None:
        return self._repo.resolve(notification_id, status, dm_notes)

    def clear_notifications(self, game_id: str) -> None:
        self._repo.delete_by_game(game_id)


__all__ = [
    "EmergenceNotificationRepository",
    "EmergenceNotificationService",
    "InvalidTransitionError",
]
