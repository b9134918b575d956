"""Pending evolution endpoints: queue, review, and entity summaries."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from reckoning.models import EntityType, EvolutionStatus
from reckoning.storage import InvalidTransitionError

from .deps import Services, get_services
from .models import ResolveEvolutionBody, UpdateEvolutionBody

router = APIRouter()


@router.get("/games/{game_id}/evolutions")
async def list_evolutions(
    game_id: str,
    status: EvolutionStatus | None = None,
    services: Services = Depends(get_services),
):
    """List evolutions in turn order. Filter by status, or all when omitted."""
    if status is None:
        return services.evolutions.find_by_game(game_id)
    return services.evolutions.find_pending(game_id, status)


@router.post("/games/{game_id}/evolutions", status_code=201)
async def create_evolution(
    game_id: str, body: dict[str, Any], services: Services = Depends(get_services)
):
    """Queue a trait or relationship proposal for review."""
    try:
        return services.evolutions.create({**body, "game_id": game_id})
    except ValidationError as e:
        raise HTTPException(422, e.errors(include_url=False, include_context=False))


@router.get("/evolutions/{evolution_id}")
async def get_evolution(evolution_id: str, services: Services = Depends(get_services)):
    evolution = services.evolutions.find_by_id(evolution_id)
    if evolution is None:
        raise HTTPException(404, "Evolution not found")
    return evolution


@router.post("/evolutions/{evolution_id}/resolve")
async def resolve_evolution(
    evolution_id: str, body: ResolveEvolutionBody, services: Services = Depends(get_services)
):
    """Approve, edit or refuse. Approved and edited changes are applied to world state."""
    svc = services.evolution_service
    try:
        if body.status == "approved":
            return svc.approve(evolution_id, body.dm_notes)
        if body.status == "edited":
            return svc.edit(evolution_id, body.changes or {}, body.dm_notes)
        return svc.refuse(evolution_id, body.dm_notes)
    except KeyError:
        raise HTTPException(404, "Evolution not found")
    except InvalidTransitionError as e:
        raise HTTPException(409, str(e))
    except ValueError as e:
        raise HTTPException(422, str(e))


@router.patch("/evolutions/{evolution_id}")
async def update_evolution(
    evolution_id: str, body: UpdateEvolutionBody, services: Services = Depends(get_services)
):
    """Edit a still-pending evolution without resolving it."""
    try:
        evolution = services.evolutions.update(evolution_id, body.model_dump(exclude_none=True))
    except InvalidTransitionError as e:
        raise HTTPException(409, str(e))
    except ValueError as e:
        raise HTTPException(422, str(e))
    if evolution is None:
        raise HTTPException(404, "Evolution not found")
    return evolution


@router.get("/games/{game_id}/entities/{entity_type}/{entity_id}")
async def entity_summary(
    game_id: str,
    entity_type: EntityType,
    entity_id: str,
    services: Services = Depends(get_services),
):
    """Traits and labelled relationships for one entity."""
    return services.evolution_service.get_entity_summary(game_id, entity_type, entity_id)
