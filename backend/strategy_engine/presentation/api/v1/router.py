"""V1 API router — aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from strategy_engine.presentation.api.v1.endpoints.health import router as health_router
from strategy_engine.presentation.api.v1.endpoints.data import router as data_router
from strategy_engine.presentation.api.v1.endpoints.entities import router as entities_router
from strategy_engine.presentation.api.v1.endpoints.signals import router as signals_router
from strategy_engine.presentation.api.v1.endpoints.mutations import router as mutations_router
from strategy_engine.presentation.api.v1.endpoints.session import router as session_router

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(data_router)
router.include_router(entities_router)
router.include_router(signals_router)
router.include_router(mutations_router)
router.include_router(session_router)
