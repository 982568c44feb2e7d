"""Cascade policy — which records disappear along with a deletion target."""

from collections.abc import Mapping
from dataclasses import dataclass, field

from strategy_engine.domain.entities import EntityKind
from strategy_engine.domain.store import EntityStore


@dataclass(frozen=True)
class DeletionPlan:
    """Target plus its transitive dependents, grouped per kind.

    ``order`` lists every ``(kind, id)`` deepest first, target last.
    """

    kind: EntityKind
    entity_id: str
    removals: dict[EntityKind, tuple[str, ...]] = field(default_factory=dict)
    order: tuple[tuple[EntityKind, str], ...] = ()

    @property
    def cascaded(self) -> tuple[tuple[EntityKind, str], ...]:
        return tuple(item for item in self.order if item != (self.kind, self.entity_id))

    @property
    def total(self) -> int:
        return len(self.order)

    def ids(self, kind: EntityKind) -> tuple[str, ...]:
        return self.removals.get(kind, ())


class CascadePolicy:
    """Computes a DeletionPlan from ownership rules, before the store mutates.

    Only ownership cascades. Link sets that mention a deleted id (a theme
    kept in an influence's ``connected_theme_ids``, a brand in a project's
    ``brand_ids``) are left alone and filtered out at read time.
    """

    # parent kind → (child kind, child's parent field)
    RULES: Mapping[EntityKind, tuple[tuple[EntityKind, str], ...]] = {
        EntityKind.YEAR: ((EntityKind.VISION, "year_id"),),
        EntityKind.VISION: ((EntityKind.THEME, "vision_id"),),
        EntityKind.THEME: (
            (EntityKind.PROJECT, "theme_id"),
            (EntityKind.INITIATIVE, "theme_id"),
        ),
        EntityKind.BRAND: ((EntityKind.LOCATION, "brand_id"),),
    }

    def plan(self, store: EntityStore, kind: EntityKind, entity_id: str) -> DeletionPlan:
        removals: dict[EntityKind, list[str]] = {kind: [entity_id]}
        levels: list[list[tuple[EntityKind, str]]] = [[(kind, entity_id)]]

        frontier = levels[0]
        while frontier:
            next_level: list[tuple[EntityKind, str]] = []
            for parent_kind, parent_id in frontier:
                for child_kind, parent_field in self.RULES.get(parent_kind, ()):
                    for child in store.list(child_kind):
                        if getattr(child, parent_field) != parent_id:
                            continue
                        bucket = removals.setdefault(child_kind, [])
                        if child.id not in bucket:
                            bucket.append(child.id)
                            next_level.append((child_kind, child.id))
            if next_level:
                levels.append(next_level)
            frontier = next_level

        order = tuple(item for level in reversed(levels) for item in level)
        return DeletionPlan(
            kind=kind,
            entity_id=entity_id,
            removals={k: tuple(ids) for k, ids in removals.items()},
            order=order,
        )
