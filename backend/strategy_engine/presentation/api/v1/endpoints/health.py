"""Health check endpoint — always available, never touches the gateways."""

from fastapi import APIRouter, Depends

from strategy_engine.application.services import StrategyEngine
from strategy_engine.config import get_settings
from strategy_engine.infrastructure.dependencies import get_engine

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(engine: StrategyEngine = Depends(get_engine)) -> dict:
    """Returns the application status and the state of background gateway calls."""
    settings = get_settings()
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.app_env,
        "pendingCalls": engine.runner.pending_count,
        "failedMutations": len(engine.runner.failed()),
        "storeVersion": engine.store.version,
    }
