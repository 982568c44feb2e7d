"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from strategy_engine.application.services import StrategyEngine
from strategy_engine.config import get_settings
from strategy_engine.infrastructure.dependencies import build_engine
from strategy_engine.infrastructure.logging.log_config import setup_logging
from strategy_engine.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — hydrate the store, then drain gateway calls at exit."""
    settings = get_settings()
    setup_logging()
    engine: StrategyEngine = app.state.engine

    # 1. Load the Primary Store into the entity store
    if settings.hydrate_on_startup:
        try:
            await engine.hydration.load_all()
        except Exception:
            logger.exception("Initial hydration failed — starting with an empty store")

    # 2. Signals need a credential; without one they load after sign-in
    if settings.hydrate_on_startup and engine.identity.current().is_authenticated:
        try:
            await engine.hydration.refresh_signals()
        except Exception:
            logger.exception("Initial signal refresh failed — continuing without signals")

    yield

    # Shutdown
    await engine.shutdown()


def create_app(engine: StrategyEngine | None = None) -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.engine = engine or build_engine(settings)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount API routes
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "strategy_engine.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
