"""Pydantic schemas for the signed-in session."""

from strategy_engine.domain.entities import Identity

from .base import CamelModel


class SessionRequest(CamelModel):
    actor_id: str | None = None
    credential: str | None = None


class SessionResponse(CamelModel):
    """The credential itself is never echoed back."""

    actor_id: str | None
    authenticated: bool

    @classmethod
    def from_identity(cls, identity: Identity) -> "SessionResponse":
        return cls(actor_id=identity.actor_id, authenticated=identity.is_authenticated)
