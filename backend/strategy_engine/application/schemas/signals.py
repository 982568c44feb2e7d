"""Pydantic schemas for signal refresh and conversion."""

from typing import Any

from pydantic import Field

from strategy_engine.domain.entities import EntityKind, InfluenceType

from .base import CamelModel
from .mutations import MutationResponse


class SignalRefreshRequest(CamelModel):
    limit: int | None = Field(None, ge=1)
    offset: int | None = Field(None, ge=0)
    author_email: str | None = None


class SignalRefreshResponse(CamelModel):
    count: int


class ConvertToProjectRequest(CamelModel):
    theme_id: str = Field(min_length=1)


class ConvertToInfluenceRequest(CamelModel):
    influence_type: InfluenceType = InfluenceType.EXTERNAL


class ConversionResponse(CamelModel):
    """Result of a conversion.

    ``failures`` lists the remote writes that did not go through. The local
    state stays converted; the two backends may disagree until they are
    retried.
    """

    signal_id: str
    target_kind: EntityKind
    target_id: str
    project_id: str | None = None
    influence_id: str | None = None
    signal_patch: dict[str, Any]
    succeeded: bool
    failures: list[MutationResponse] = Field(default_factory=list)
