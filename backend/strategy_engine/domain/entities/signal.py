"""Signal entity — inbox item owned by the external Signal Service."""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from .base import Entity, EntityKind


class SignalStatus(str, Enum):
    """Lifecycle of a captured signal. ``converted`` is terminal for conversion."""

    INBOX = "inbox"
    TRIAGED = "triaged"
    CONVERTED = "converted"
    ARCHIVED = "archived"


# Frozen once a signal is converted.
CONVERSION_FIELDS = frozenset({"status", "project_id", "influence_id"})


@dataclass(frozen=True)
class Signal(Entity):
    title: str = ""
    body: str | None = None
    date: str | None = None
    source: str | None = None
    author_id: str | None = None
    author_name: str | None = None
    author_email: str | None = None
    author_brand_ids: tuple[str, ...] = ()
    status: SignalStatus = SignalStatus.INBOX
    theme_ids: tuple[str, ...] = ()
    influence_ids: tuple[str, ...] = ()
    restaurant_ids: tuple[str, ...] = ()
    project_id: str | None = None
    influence_id: str | None = None

    kind: ClassVar[EntityKind] = EntityKind.SIGNAL
    link_fields: ClassVar[frozenset[str]] = frozenset(
        {"author_brand_ids", "theme_ids", "influence_ids", "restaurant_ids"}
    )
    enum_fields: ClassVar[dict[str, type[Enum]]] = {"status": SignalStatus}

    @property
    def is_converted(self) -> bool:
        return self.status is SignalStatus.CONVERTED
