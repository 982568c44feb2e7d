from .entities import (
    DeleteResponse,
    EntityCreatedResponse,
    MoveItemRequest,
    SandboxNodeRequest,
    ToggleLinkRequest,
    ToggleLinkResponse,
)
from .mutations import MutationResponse
from .session import SessionRequest, SessionResponse
from .signals import (
    ConversionResponse,
    ConvertToInfluenceRequest,
    ConvertToProjectRequest,
    SignalRefreshRequest,
    SignalRefreshResponse,
)

__all__ = [
    "DeleteResponse",
    "EntityCreatedResponse",
    "MoveItemRequest",
    "SandboxNodeRequest",
    "ToggleLinkRequest",
    "ToggleLinkResponse",
    "MutationResponse",
    "SessionRequest",
    "SessionResponse",
    "ConversionResponse",
    "ConvertToInfluenceRequest",
    "ConvertToProjectRequest",
    "SignalRefreshRequest",
    "SignalRefreshResponse",
]
