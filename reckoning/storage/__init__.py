from .core import (
    InvalidGameIdError,
    InvalidTransitionError,
    JsonStore,
    check_game_id,
    delete_game,
    utc_now,
)
from .evolutions import PendingEvolutionQueue
from .relationships import DIMENSION_DEFAULTS, RELATIONSHIP_DIMENSIONS, RelationshipRepository
from .traits import TraitRepository

__all__ = [
    "DIMENSION_DEFAULTS",
    "InvalidGameIdError",
    "InvalidTransitionError",
    "JsonStore",
    "PendingEvolutionQueue",
    "RELATIONSHIP_DIMENSIONS",
    "RelationshipRepository",
    "TraitRepository",
    "check_game_id",
    "delete_game",
    "utc_now",
]
