"""Strategy hierarchy entities: years → visions → themes → initiatives/projects."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

from .base import Entity, EntityKind


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class InitiativeStatus(str, Enum):
    IDEA = "idea"
    SHAPING = "shaping"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    ON_HOLD = "on_hold"


class ProjectStatus(str, Enum):
    IDEA = "idea"
    IN_PREP = "in_prep"
    RUNNING = "running"
    DONE = "done"


@dataclass(frozen=True)
class Year(Entity):
    """Root of the strategy tree, titled with a year label."""

    title: str = ""
    sandbox_position: dict[str, Any] | None = None

    kind: ClassVar[EntityKind] = EntityKind.YEAR


@dataclass(frozen=True)
class Vision(Entity):
    year_id: str | None = None
    title: str = ""
    description: str = ""
    brand_ids: tuple[str, ...] = ()
    location_ids: tuple[str, ...] = ()
    sandbox_position: dict[str, Any] | None = None

    kind: ClassVar[EntityKind] = EntityKind.VISION
    link_fields: ClassVar[frozenset[str]] = frozenset({"brand_ids", "location_ids"})
    parent_fields: ClassVar[dict[str, EntityKind]] = {"year_id": EntityKind.YEAR}


@dataclass(frozen=True)
class Theme(Entity):
    """Strategic theme under a vision. Influences link to it from their side."""

    vision_id: str | None = None
    title: str = ""
    description: str = ""
    priority: Priority = Priority.MEDIUM
    brand_ids: tuple[str, ...] = ()
    location_ids: tuple[str, ...] = ()
    sandbox_position: dict[str, Any] | None = None

    kind: ClassVar[EntityKind] = EntityKind.THEME
    link_fields: ClassVar[frozenset[str]] = frozenset({"brand_ids", "location_ids"})
    enum_fields: ClassVar[dict[str, type[Enum]]] = {"priority": Priority}
    parent_fields: ClassVar[dict[str, EntityKind]] = {"vision_id": EntityKind.VISION}


@dataclass(frozen=True)
class Initiative(Entity):
    theme_id: str | None = None
    title: str = ""
    description: str = ""
    status: InitiativeStatus = InitiativeStatus.IDEA
    sandbox_position: dict[str, Any] | None = None

    kind: ClassVar[EntityKind] = EntityKind.INITIATIVE
    enum_fields: ClassVar[dict[str, type[Enum]]] = {"status": InitiativeStatus}
    parent_fields: ClassVar[dict[str, EntityKind]] = {"theme_id": EntityKind.THEME}


@dataclass(frozen=True)
class Project(Entity):
    """Unit of work under a theme, optionally grouped by an initiative.

    ``signal_id`` records the signal a project was converted from.
    """

    theme_id: str | None = None
    initiative_id: str | None = None
    title: str = ""
    description: str = ""
    status: ProjectStatus = ProjectStatus.IDEA
    brand_ids: tuple[str, ...] = ()
    start_date: str | None = None
    end_date: str | None = None
    signal_id: str | None = None
    sandbox_position: dict[str, Any] | None = None

    kind: ClassVar[EntityKind] = EntityKind.PROJECT
    link_fields: ClassVar[frozenset[str]] = frozenset({"brand_ids"})
    enum_fields: ClassVar[dict[str, type[Enum]]] = {"status": ProjectStatus}
    parent_fields: ClassVar[dict[str, EntityKind]] = {"theme_id": EntityKind.THEME}
    optional_parent_fields: ClassVar[dict[str, EntityKind]] = {
        "initiative_id": EntityKind.INITIATIVE,
    }
