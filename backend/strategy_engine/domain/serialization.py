"""Field naming and wire-format translation.

Entities use snake_case attributes. The Primary Store speaks snake_case
columns, while the UI and the Signal Service speak camelCase JSON. Every
crossing goes through this module.
"""

import dataclasses
import logging
import re
from collections.abc import Callable, Mapping
from datetime import datetime
from enum import Enum
from typing import Any

from strategy_engine.domain.entities import Entity, EntityKind, entity_class
from strategy_engine.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)

_CAMEL_HUMP = re.compile(r"([a-z0-9])([A-Z])")


def to_snake(name: str) -> str:
    """``connectedThemeIds`` → ``connected_theme_ids``; snake names pass through."""
    return _CAMEL_HUMP.sub(r"\1_\2", name).lower()


def to_camel(name: str) -> str:
    """``connected_theme_ids`` → ``connectedThemeIds``; camel names pass through."""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def translate_keys(mapping: Mapping[str, Any], convert: Callable[[str], str]) -> dict[str, Any]:
    return {convert(key): value for key, value in mapping.items()}


def wire_value(value: Any) -> Any:
    """JSON-safe form: ISO-8601 instants, enum values, lists for link tuples."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, tuple):
        return [wire_value(item) for item in value]
    if isinstance(value, dict):
        return {key: wire_value(item) for key, item in value.items()}
    return value


def fields_to_record(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Partial patch → Primary Store column names."""
    return {to_snake(key): wire_value(value) for key, value in fields.items()}


def fields_to_camel(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Partial patch → camelCase JSON (UI and Signal Service)."""
    return {to_camel(key): wire_value(value) for key, value in fields.items()}


def _entity_fields(entity: Entity) -> dict[str, Any]:
    return {f.name: getattr(entity, f.name) for f in dataclasses.fields(entity)}


def entity_to_record(entity: Entity) -> dict[str, Any]:
    return fields_to_record(_entity_fields(entity))


def entity_to_camel(entity: Entity) -> dict[str, Any]:
    return fields_to_camel(_entity_fields(entity))


def record_to_entity(kind: EntityKind, record: Mapping[str, Any]) -> Entity:
    """Build an entity from a remote record in either naming convention.

    Columns the entity does not model are ignored. The restaurant variant
    is picked from the ``category`` discriminant.
    """
    values = translate_keys(record, to_snake)
    if not values.get("id"):
        raise ValidationError(f"{kind.value} record without an id")
    cls = entity_class(kind, values.get("category"))
    known = cls.field_names()
    ignored = sorted(set(values) - known)
    if ignored:
        logger.debug("Ignoring %s column(s) on %s/%s: %s", len(ignored), kind.value, values["id"], ignored)
    return cls.build(**{key: value for key, value in values.items() if key in known})
