"""Mutation history, manual retry and the live sync event stream."""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse

from strategy_engine.application.schemas import MutationResponse
from strategy_engine.application.services import StrategyEngine
from strategy_engine.domain.entities import MutationStatus
from strategy_engine.domain.exceptions import ValidationError
from strategy_engine.infrastructure.dependencies import get_engine
from strategy_engine.presentation.api.v1.endpoints.errors import http_error

router = APIRouter(tags=["Mutations"])


@router.get("/mutations", response_model=list[MutationResponse])
async def list_mutations(
    mutation_status: MutationStatus | None = Query(None, alias="status"),
    engine: StrategyEngine = Depends(get_engine),
) -> list[MutationResponse]:
    """Recent mutations, newest first, optionally filtered by status."""
    return [MutationResponse.model_validate(m) for m in engine.runner.history(mutation_status)]


@router.post(
    "/mutations/{mutation_id}/retry",
    response_model=MutationResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def retry_mutation(
    mutation_id: str,
    engine: StrategyEngine = Depends(get_engine),
) -> MutationResponse:
    """Re-issue the gateway call of a failed mutation."""
    try:
        engine.runner.retry(mutation_id)
    except ValidationError as e:
        raise http_error(e)
    return MutationResponse.model_validate(engine.runner.get(mutation_id))


# ── SSE Stream ───────────────────────────────────────────────────────


@router.get("/events")
async def sync_event_stream(
    engine: StrategyEngine = Depends(get_engine),
) -> StreamingResponse:
    """SSE endpoint for mutation and conversion outcomes.

    Clients connect via EventSource and receive ``mutation.<status>`` and
    ``conversion.failed`` events.
    """
    return StreamingResponse(
        engine.events.subscribe(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
