"""Pydantic schemas for entity intents (create, link, move, sandbox, delete)."""

from typing import Any

from pydantic import Field

from .base import CamelModel


class EntityCreatedResponse(CamelModel):
    """Id of a record created locally; the remote insert runs in the background."""

    id: str
    kind: str


class ToggleLinkRequest(CamelModel):
    target_id: str = Field(min_length=1)


class ToggleLinkResponse(CamelModel):
    field: str
    ids: list[str]


class MoveItemRequest(CamelModel):
    """Drag-and-drop reparenting, optionally at a sibling position."""

    new_parent_id: str = Field(min_length=1)
    index: int | None = Field(None, ge=0)


class SandboxNodeRequest(CamelModel):
    position: dict[str, Any] | None = Field(None, examples=[{"x": 120, "y": 80}])


class DeleteResponse(CamelModel):
    deleted: bool
