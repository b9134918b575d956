"""Action vocabulary, classification and event structuring endpoints."""

from fastapi import APIRouter, Depends

from reckoning.actions import ACTION_CATEGORIES, ACTION_DESCRIPTIONS, CATEGORY_DESCRIPTIONS, CATEGORY_TO_ACTIONS
from reckoning.models import ClassificationResult, GenerationParams, StructuredEventData

from .deps import Services, get_services
from .models import ClassifyBody

router = APIRouter()


@router.get("/actions")
async def list_actions():
    """The action vocabulary grouped by category, in precedence order."""
    return [
        {
            "category": category,
            "description": CATEGORY_DESCRIPTIONS[category],
            "actions": [
                {"action": a, "description": ACTION_DESCRIPTIONS[a]}
                for a in CATEGORY_TO_ACTIONS[category]
            ],
        }
        for category in ACTION_CATEGORIES
    ]


@router.post("/classify", response_model=ClassificationResult)
async def classify(body: ClassifyBody, services: Services = Depends(get_services)):
    """Classify narrative text. With fallback=true, ambiguous text goes to the language model."""
    if body.fallback:
        return await services.classifier.classify_with_fallback(body.content)
    return services.classifier.classify(body.content)


@router.post("/events/structure", response_model=StructuredEventData)
async def structure_event(body: GenerationParams, services: Services = Depends(get_services)):
    """Build structured event fields from a generated passage."""
    return services.builder.build_from_generation(body)
