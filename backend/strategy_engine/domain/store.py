"""Entity store — the normalized in-memory mirror of both remote backends.

The store is the only state a UI reads. It performs no I/O and never
dispatches mutations itself; callers compute new collections with the pure
``with_*`` helpers below and hand them to ``replace_collection(s)``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from strategy_engine.domain.entities import Entity, EntityKind


class EntityStore:
    """Mapping from entity kind to an ordered, id-keyed collection."""

    def __init__(self, collections: Mapping[EntityKind, Iterable[Entity]] | None = None):
        self._collections: dict[EntityKind, dict[str, Entity]] = {
            kind: {} for kind in EntityKind
        }
        self._version = 0
        if collections:
            self.replace_collections(collections)

    @property
    def version(self) -> int:
        """Incremented on every committed change."""
        return self._version

    def get(self, kind: EntityKind, entity_id: str | None) -> Entity | None:
        if entity_id is None:
            return None
        return self._collections[kind].get(entity_id)

    def list(self, kind: EntityKind) -> list[Entity]:
        return list(self._collections[kind].values())

    def count(self, kind: EntityKind) -> int:
        return len(self._collections[kind])

    def replace_collection(self, kind: EntityKind, entities: Iterable[Entity]) -> None:
        self.replace_collections({kind: entities})

    def replace_collections(self, changes: Mapping[EntityKind, Iterable[Entity]]) -> None:
        """Swap several collections in as one step — all or nothing."""
        staged = {kind: self._index(kind, entities) for kind, entities in changes.items()}
        self._collections.update(staged)
        self._version += 1

    def snapshot(self) -> dict[str, list[Entity]]:
        """Current contents keyed by collection name."""
        return {kind.collection: self.list(kind) for kind in EntityKind}

    @staticmethod
    def _index(kind: EntityKind, entities: Iterable[Entity]) -> dict[str, Entity]:
        indexed: dict[str, Entity] = {}
        for entity in entities:
            if entity.kind is not kind:
                raise TypeError(
                    f"cannot store {entity.kind.value} '{entity.id}' in {kind.collection}"
                )
            indexed[entity.id] = entity
        return indexed


# ── Pure collection helpers ──────────────────────────────────────────


def with_inserted(entities: Sequence[Entity], entity: Entity) -> list[Entity]:
    return [*(e for e in entities if e.id != entity.id), entity]


def with_replaced(entities: Sequence[Entity], entity: Entity) -> list[Entity]:
    """Swap the record with the same id in place; append when absent."""
    replaced = False
    result = []
    for existing in entities:
        if existing.id == entity.id:
            result.append(entity)
            replaced = True
        else:
            result.append(existing)
    if not replaced:
        result.append(entity)
    return result


def without(entities: Sequence[Entity], ids: Iterable[str]) -> list[Entity]:
    doomed = set(ids)
    return [e for e in entities if e.id not in doomed]


def with_moved(
    entities: Sequence[Entity],
    entity: Entity,
    parent_field: str,
    index: int | None = None,
) -> list[Entity]:
    """Place ``entity`` among the siblings sharing its parent.

    Without an index the record keeps its position. With one, it is
    inserted at that position among its new siblings, which are moved to
    the end of the collection.
    """
    if index is None:
        return with_replaced(entities, entity)
    parent_id = getattr(entity, parent_field)
    others = [e for e in entities if e.id != entity.id]
    siblings = [e for e in others if getattr(e, parent_field) == parent_id]
    rest = [e for e in others if getattr(e, parent_field) != parent_id]
    siblings.insert(min(index, len(siblings)), entity)
    return [*rest, *siblings]
