"""Many-to-many link algebra.

Link fields are sets represented as ordered-unique id tuples. Every
operation here is idempotent and never fails on an id that is absent.
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from strategy_engine.domain.entities.base import Entity, EntityKind
    from strategy_engine.domain.store import EntityStore


def unique_ids(ids: Iterable[str] | None) -> tuple[str, ...]:
    """Normalize any id sequence to an ordered-unique tuple, dropping blanks."""
    if ids is None:
        return ()
    if isinstance(ids, str):
        ids = (ids,)
    seen: dict[str, None] = {}
    for item in ids:
        if item:
            seen.setdefault(str(item), None)
    return tuple(seen)


def add_link(ids: Iterable[str] | None, target_id: str) -> tuple[str, ...]:
    current = unique_ids(ids)
    if target_id in current:
        return current
    return (*current, target_id)


def remove_link(ids: Iterable[str] | None, target_id: str) -> tuple[str, ...]:
    return tuple(i for i in unique_ids(ids) if i != target_id)


def toggle_link(ids: Iterable[str] | None, target_id: str) -> tuple[str, ...]:
    """Remove ``target_id`` when present, append it otherwise.

    Toggling twice restores membership, not position: an id that was
    removed and added back ends up last.
    """
    current = unique_ids(ids)
    if target_id in current:
        return remove_link(current, target_id)
    return add_link(current, target_id)


def union_links(ids: Iterable[str] | None, *extra: str) -> tuple[str, ...]:
    return unique_ids((*unique_ids(ids), *extra))


def resolve_links(
    store: "EntityStore", kind: "EntityKind", ids: Iterable[str] | None
) -> list["Entity"]:
    """Dereference link ids, skipping any that no longer resolve."""
    resolved = []
    for entity_id in unique_ids(ids):
        entity = store.get(kind, entity_id)
        if entity is not None:
            resolved.append(entity)
    return resolved
