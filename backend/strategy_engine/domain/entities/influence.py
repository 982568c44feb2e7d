"""Influence entity — an external or internal force acting on the strategy."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

from .base import Entity, EntityKind


class InfluenceType(str, Enum):
    EXTERNAL = "external"
    INTERNAL = "internal"


@dataclass(frozen=True)
class Influence(Entity):
    """Owns the theme/project links in both directions.

    Themes and projects expose their influences only as a reverse view over
    ``connected_theme_ids`` / ``connected_project_ids``. ``signal_ids``
    lists the signals that contributed to this influence.
    """

    title: str = ""
    type: InfluenceType = InfluenceType.EXTERNAL
    description: str = ""
    connected_theme_ids: tuple[str, ...] = ()
    connected_project_ids: tuple[str, ...] = ()
    signal_ids: tuple[str, ...] = ()
    sandbox_position: dict[str, Any] | None = None

    kind: ClassVar[EntityKind] = EntityKind.INFLUENCE
    link_fields: ClassVar[frozenset[str]] = frozenset(
        {"connected_theme_ids", "connected_project_ids", "signal_ids"}
    )
    enum_fields: ClassVar[dict[str, type[Enum]]] = {"type": InfluenceType}
