"""FastAPI API endpoints under /api.

Endpoint groups: action vocabulary and classification, event structuring,
pending evolutions (queue, review, entity summaries), emergence notifications,
the per-game narrator event stream, and settings. Game-scoped resources are
nested under /api/games/{game_id}/.
"""

from fastapi import APIRouter

from .classify import router as classify_router
from .evolutions import router as evolutions_router
from .notifications import router as notifications_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(classify_router)
router.include_router(evolutions_router)
router.include_router(notifications_router)
router.include_router(settings_router)
