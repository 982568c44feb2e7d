"""Session endpoints — hand the engine the actor id and bearer credential."""

from fastapi import APIRouter, Depends, status

from strategy_engine.application.schemas import SessionRequest, SessionResponse
from strategy_engine.infrastructure.dependencies import get_session_identity
from strategy_engine.infrastructure.identity.session_identity import SessionIdentityProvider

router = APIRouter(prefix="/session", tags=["Session"])


@router.get("", response_model=SessionResponse)
async def get_session(
    identity: SessionIdentityProvider = Depends(get_session_identity),
) -> SessionResponse:
    return SessionResponse.from_identity(identity.current())


@router.put("", response_model=SessionResponse)
async def sign_in(
    data: SessionRequest,
    identity: SessionIdentityProvider = Depends(get_session_identity),
) -> SessionResponse:
    """Replace the current actor; later mutations are stamped with it."""
    return SessionResponse.from_identity(identity.sign_in(data.actor_id, data.credential))


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(
    identity: SessionIdentityProvider = Depends(get_session_identity),
) -> None:
    identity.sign_out()
