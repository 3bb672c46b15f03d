"""
Flow API endpoints - one POST route per code assistant feature.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query, Request

from ..flows import CODE_FLOWS, PromptFlow
from ..llm.base import LLMProvider
from ..models import AIModel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/flows", tags=["flows"])


def resolve_provider(request: Request, ai_model: Optional[AIModel]) -> Optional[LLMProvider]:
    """
    Look up the provider for the selected model.

    Falls back to the configured default model. Returns None when the model
    has no API key, which the flow reports as unavailable.
    """
    name = ai_model.value if ai_model else request.app.state.settings.llm_provider
    return request.app.state.llm_providers.get(name)


def _add_flow_route(flow: PromptFlow) -> None:
    input_model = flow.input_model

    async def run_flow(
        payload: input_model,
        request: Request,
        ai_model: Optional[AIModel] = Query(None, description="Model to run the flow on"),
    ):
        provider = resolve_provider(request, ai_model)
        return await flow.run(provider, payload)

    run_flow.__name__ = f"run_{flow.name.replace('-', '_')}"
    router.add_api_route(
        f"/{flow.name}",
        run_flow,
        methods=["POST"],
        response_model=flow.output_model,
        summary=f"Run the {flow.name} flow",
    )


for _flow in CODE_FLOWS.values():
    _add_flow_route(_flow)
