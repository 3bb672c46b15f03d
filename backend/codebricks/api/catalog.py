"""
Catalog API endpoint - choices for the flow forms and model selector.
"""

from fastapi import APIRouter, Request

from ..models import Catalog, CatalogOption, PROGRAMMING_LANGUAGES
from ..models.catalog import (
    AI_MODEL_LABELS,
    OPTIMIZATION_GOAL_LABELS,
    TESTING_FRAMEWORK_LABELS,
)

router = APIRouter(tags=["catalog"])


@router.get("/catalog", response_model=Catalog)
async def get_catalog(request: Request):
    """
    List languages, optimization goals, testing frameworks and AI models.
    A model is available when its API key is configured.
    """
    providers = request.app.state.llm_providers
    return Catalog(
        languages=[
            CatalogOption(value=value, label=label)
            for value, label in PROGRAMMING_LANGUAGES.items()
        ],
        optimization_goals=[
            CatalogOption(value=goal.value, label=label)
            for goal, label in OPTIMIZATION_GOAL_LABELS.items()
        ],
        testing_frameworks=[
            CatalogOption(value=framework.value, label=label)
            for framework, label in TESTING_FRAMEWORK_LABELS.items()
        ],
        ai_models=[
            CatalogOption(
                value=model.value,
                label=label,
                available=providers.get(model.value) is not None,
            )
            for model, label in AI_MODEL_LABELS.items()
        ],
    )
