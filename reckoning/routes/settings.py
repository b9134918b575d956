"""Settings endpoints: read and update data_dir/config.json."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from reckoning import config

from .deps import Services, apply_config, get_services

router = APIRouter()


@router.get("/settings")
async def get_settings(services: Services = Depends(get_services)):
    """Effective config: classifier, llm connection, emergence thresholds."""
    return config.get_config(services.data_dir)


@router.patch("/settings")
async def update_settings(body: dict, services: Services = Depends(get_services)):
    """Update settings (partial merge). Takes effect for the next request."""
    try:
        cfg = config.update_config(services.data_dir, body)
    except ValidationError as e:
        raise HTTPException(422, e.errors(include_url=False, include_context=False))
    except ValueError as e:
        raise HTTPException(422, str(e))
    apply_config(services, cfg)
    return cfg
