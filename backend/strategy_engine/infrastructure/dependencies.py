"""FastAPI dependency injection — wires infrastructure to the application layer."""

import httpx
from fastapi import HTTPException, Request, status

from strategy_engine.application.services import StrategyEngine
from strategy_engine.config import Settings, get_settings
from strategy_engine.infrastructure.identity.session_identity import SessionIdentityProvider
from strategy_engine.infrastructure.signal_lite import SignalLiteClient
from strategy_engine.infrastructure.supabase import SupabaseRestGateway


def build_engine(
    settings: Settings | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> StrategyEngine:
    """Build a StrategyEngine backed by the Supabase and Signal Lite adapters.

    ``http_client`` is shared by both adapters when given; otherwise each
    request opens its own client.
    """
    settings = settings or get_settings()

    identity = SessionIdentityProvider(
        actor_id=settings.actor_id,
        credential=settings.actor_credential,
    )
    primary = SupabaseRestGateway(
        base_url=settings.primary_store_url,
        api_key=settings.primary_store_api_key,
        identity=identity,
        timeout=settings.gateway_timeout,
        http_client=http_client,
    )
    signals = SignalLiteClient(
        base_url=settings.signal_api_url,
        timeout=settings.gateway_timeout,
        http_client=http_client,
    )
    return StrategyEngine(
        primary,
        signals,
        identity,
        policy=settings.reconciliation_policy,
        cascade_remote_deletes=settings.cascade_remote_deletes,
        history_size=settings.mutation_history_size,
    )


def get_engine(request: Request) -> StrategyEngine:
    """The engine built at app creation, one per process."""
    return request.app.state.engine


def get_session_identity(request: Request) -> SessionIdentityProvider:
    identity = get_engine(request).identity
    if not isinstance(identity, SessionIdentityProvider):
        raise HTTPException(
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            detail="Identity is managed outside this service",
        )
    return identity
