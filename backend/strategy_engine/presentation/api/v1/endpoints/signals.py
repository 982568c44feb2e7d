"""Signal endpoints — refresh from the Signal Service and convert into planning entities."""

import logging
from typing import Any

from fastapi import APIRouter, Depends

from strategy_engine.application.schemas import (
    ConversionResponse,
    ConvertToInfluenceRequest,
    ConvertToProjectRequest,
    MutationResponse,
    SignalRefreshRequest,
    SignalRefreshResponse,
)
from strategy_engine.application.services import ConversionResult, StrategyEngine
from strategy_engine.domain.exceptions import (
    AuthenticationError,
    ConcurrencyError,
    GatewayError,
    ValidationError,
)
from strategy_engine.domain.serialization import entity_to_camel
from strategy_engine.infrastructure.dependencies import get_engine
from strategy_engine.presentation.api.v1.endpoints.errors import http_error

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Signals"])


def _to_response(result: ConversionResult) -> ConversionResponse:
    return ConversionResponse(
        signal_id=result.signal_id,
        target_kind=result.target_kind,
        target_id=result.target_id,
        project_id=result.project_id,
        influence_id=result.influence_id,
        signal_patch=result.signal_patch,
        succeeded=result.succeeded,
        failures=[MutationResponse.model_validate(m) for m in result.failures],
    )


@router.post("/signals/refresh", response_model=SignalRefreshResponse)
async def refresh_signals(
    data: SignalRefreshRequest | None = None,
    engine: StrategyEngine = Depends(get_engine),
) -> SignalRefreshResponse:
    """Reload the signals collection with the signed-in actor's credential."""
    data = data or SignalRefreshRequest()
    try:
        count = await engine.hydration.refresh_signals(
            limit=data.limit, offset=data.offset, author_email=data.author_email
        )
    except (AuthenticationError, GatewayError) as e:
        raise http_error(e)
    return SignalRefreshResponse(count=count)


@router.post("/signals/{signal_id}/convert/project", response_model=ConversionResponse)
async def convert_to_project(
    signal_id: str,
    data: ConvertToProjectRequest,
    engine: StrategyEngine = Depends(get_engine),
) -> ConversionResponse:
    """Turn a signal into a Project under the chosen theme.

    Remote failures do not fail the request; they are listed in
    ``failures`` and announced as a ``conversion.failed`` event.
    """
    try:
        result = await engine.conversion.convert_to_project(signal_id, data.theme_id)
    except (ValidationError, ConcurrencyError) as e:
        raise http_error(e)
    return _to_response(result)


@router.post("/signals/{signal_id}/convert/influence", response_model=ConversionResponse)
async def convert_to_influence(
    signal_id: str,
    data: ConvertToInfluenceRequest,
    engine: StrategyEngine = Depends(get_engine),
) -> ConversionResponse:
    """Create an Influence with the signal as a contributing signal."""
    try:
        result = await engine.conversion.convert_to_influence(signal_id, data.influence_type)
    except (ValidationError, ConcurrencyError) as e:
        raise http_error(e)
    return _to_response(result)


@router.get("/influences/{influence_id}/signals")
async def list_influence_signals(
    influence_id: str,
    engine: StrategyEngine = Depends(get_engine),
) -> list[dict[str, Any]]:
    """Signals contributing to an influence."""
    return [entity_to_camel(s) for s in engine.views.signals_for_influence(influence_id)]
