"""Base entity and entity kinds — pure Python, no framework dependencies."""

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, TypeVar

from strategy_engine.domain.exceptions import ValidationError
from strategy_engine.domain.links import unique_ids

E = TypeVar("E", bound="Entity")

AUDIT_FIELDS = ("created_by", "created_at", "updated_by", "updated_at")
_TIMESTAMP_FIELDS = frozenset({"created_at", "updated_at"})


class EntityKind(str, Enum):
    """Every kind of record held in the entity store."""

    YEAR = "year"
    VISION = "vision"
    THEME = "theme"
    INITIATIVE = "initiative"
    PROJECT = "project"
    BRAND = "brand"
    LOCATION = "location"
    NEW_RESTAURANT = "new_restaurant"
    INFLUENCE = "influence"
    SIGNAL = "signal"

    @property
    def collection(self) -> str:
        """Collection (and Primary Store table) name, e.g. ``new_restaurants``."""
        return f"{self.value}s"


def parse_timestamp(value: Any) -> datetime | None:
    """Accept a datetime or an ISO-8601 string; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"invalid ISO-8601 timestamp {value!r}") from None
    else:
        raise ValidationError(f"invalid timestamp {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Entity:
    """Common shape of every record: client-generated id plus audit stamp.

    Records are immutable. ``build`` validates and coerces raw values,
    ``apply`` returns a patched copy. Subclasses describe their links,
    enums and parent references through class-level tables.
    """

    id: str
    created_by: str | None = None
    created_at: datetime | None = None
    updated_by: str | None = None
    updated_at: datetime | None = None

    kind: ClassVar[EntityKind]
    link_fields: ClassVar[frozenset[str]] = frozenset()
    enum_fields: ClassVar[Mapping[str, type[Enum]]] = {}
    parent_fields: ClassVar[Mapping[str, EntityKind]] = {}
    optional_parent_fields: ClassVar[Mapping[str, EntityKind]] = {}
    immutable_fields: ClassVar[frozenset[str]] = frozenset({"id", "created_by", "created_at"})

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in dataclasses.fields(cls))

    @classmethod
    def build(cls: type[E], **values: Any) -> E:
        """Create a record from raw values, rejecting unknown fields."""
        cls._reject_unknown(values)
        return cls(**{name: cls._coerce(name, value) for name, value in values.items()})

    def apply(self: E, patch: Mapping[str, Any]) -> E:
        """Return a copy with ``patch`` merged in."""
        self._reject_unknown(patch)
        coerced = {name: self._coerce(name, value) for name, value in patch.items()}
        return dataclasses.replace(self, **coerced)

    def references(self) -> dict[str, tuple[EntityKind, str | None, bool]]:
        """Map each parent field to ``(parent kind, current id, required)``."""
        refs = {
            name: (kind, getattr(self, name), True)
            for name, kind in self.parent_fields.items()
        }
        refs.update(
            (name, (kind, getattr(self, name), False))
            for name, kind in self.optional_parent_fields.items()
        )
        return refs

    @classmethod
    def _reject_unknown(cls, values: Mapping[str, Any]) -> None:
        unknown = set(values) - cls.field_names()
        if unknown:
            raise ValidationError(
                f"unknown field(s) for {cls.kind.value}: {', '.join(sorted(unknown))}"
            )

    @classmethod
    def _coerce(cls, name: str, value: Any) -> Any:
        if name in cls.link_fields:
            return unique_ids(value)
        if name in _TIMESTAMP_FIELDS:
            return parse_timestamp(value)
        enum_type = cls.enum_fields.get(name)
        if enum_type is not None and value is not None and not isinstance(value, enum_type):
            try:
                return enum_type(value)
            except ValueError:
                allowed = ", ".join(member.value for member in enum_type)
                raise ValidationError(
                    f"'{value}' is not one of: {allowed}", field=name
                ) from None
        return value
