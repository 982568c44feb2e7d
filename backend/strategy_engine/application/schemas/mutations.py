"""Pydantic schemas for the mutation history."""

from datetime import datetime
from typing import Any

from strategy_engine.domain.entities import (
    EntityKind,
    MutationOperation,
    MutationStatus,
)

from .base import CamelModel


class MutationResponse(CamelModel):
    """A dispatched mutation and the state of its gateway call."""

    id: str
    operation: MutationOperation
    kind: EntityKind
    entity_id: str
    gateway: str
    status: MutationStatus
    attempts: int
    error_message: str | None
    payload: dict[str, Any]
    requested_at: datetime
    applied_at: datetime | None
    completed_at: datetime | None
