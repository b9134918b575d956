"""Emergence notification endpoints and the narrator event stream."""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from reckoning.broadcast import SSE_HEADERS, format_sse_message
from reckoning.models import CanonicalEvent
from reckoning.storage import InvalidTransitionError, check_game_id, delete_game

from .deps import Services, get_services
from .models import NotesBody

logger = logging.getLogger(__name__)

router = APIRouter()

HEARTBEAT_SECONDS = 30.0


@router.post("/games/{game_id}/events/committed")
async def event_committed(
    game_id: str, event: CanonicalEvent, services: Services = Depends(get_services)
):
    """Run emergence detection for a committed event. Returns new notifications."""
    if event.game_id != game_id:
        raise HTTPException(422, "Event belongs to a different game")
    return services.notifications.process_event(event)


@router.get("/games/{game_id}/notifications")
async def list_notifications(
    game_id: str,
    pending_only: bool = False,
    limit: int | None = None,
    services: Services = Depends(get_services),
):
    """Notifications newest first."""
    if pending_only:
        return services.notifications.get_pending_notifications(game_id)
    return services.notifications.get_notifications(game_id, limit)


@router.get("/notifications/{notification_id}")
async def get_notification(notification_id: str, services: Services = Depends(get_services)):
    notification = services.notifications.get_notification(notification_id)
    if notification is None:
        raise HTTPException(404, "Notification not found")
    return notification


@router.post("/notifications/{notification_id}/acknowledge")
async def acknowledge_notification(
    notification_id: str, body: NotesBody, services: Services = Depends(get_services)
):
    try:
        notification = services.notifications.acknowledge(notification_id, body.dm_notes)
    except InvalidTransitionError as e:
        raise HTTPException(409, str(e))
    if notification is None:
        raise HTTPException(404, "Notification not found")
    return notification


@router.post("/notifications/{notification_id}/dismiss")
async def dismiss_notification(
    notification_id: str, body: NotesBody, services: Services = Depends(get_services)
):
    try:
        notification = services.notifications.dismiss(notification_id, body.dm_notes)
    except InvalidTransitionError as e:
        raise HTTPException(409, str(e))
    if notification is None:
        raise HTTPException(404, "Notification not found")
    return notification


@router.delete("/games/{game_id}/notifications")
async def clear_notifications(game_id: str, services: Services = Depends(get_services)):
    services.notifications.clear_notifications(game_id)
    return {"ok": True}


@router.delete("/games/{game_id}")
async def delete_game_data(game_id: str, services: Services = Depends(get_services)):
    """Remove every evolution, notification, relationship and trait of a game."""
    delete_game(services.data_dir, game_id)
    return {"ok": True}


@router.get("/games/{game_id}/stream")
async def stream(game_id: str, services: Services = Depends(get_services)):
    """Server-sent events for the narrator: emergence_detected, plus heartbeats."""
    check_game_id(game_id)
    broadcaster = services.broadcaster
    client_id, queue = broadcaster.subscribe(game_id)

    async def events():
        try:
            yield format_sse_message({"type": "connected", "client_id": client_id})
            while True:
                try:
                    message = await asyncio.wait_for(queue.get(), timeout=HEARTBEAT_SECONDS)
                except asyncio.TimeoutError:
                    yield ": heartbeat\n\n"
                    continue
                yield format_sse_message(message)
        finally:
            broadcaster.unsubscribe(game_id, client_id)

    return StreamingResponse(events(), media_type="text/event-stream", headers=SSE_HEADERS)
