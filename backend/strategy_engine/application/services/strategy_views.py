"""Read-side views over the entity store: tree, breadcrumbs, stats, reverse links.

Links are dereferenced leniently; ids that no longer resolve are skipped.
"""

from typing import Any

from strategy_engine.domain.entities import (
    Entity,
    EntityKind,
    Influence,
    Project,
    Signal,
)
from strategy_engine.domain.links import resolve_links
from strategy_engine.domain.serialization import entity_to_camel
from strategy_engine.domain.store import EntityStore

# child kind → parent field, walking up the hierarchy
_PATH_PARENTS: dict[EntityKind, tuple[EntityKind, str]] = {
    EntityKind.PROJECT: (EntityKind.THEME, "theme_id"),
    EntityKind.INITIATIVE: (EntityKind.THEME, "theme_id"),
    EntityKind.THEME: (EntityKind.VISION, "vision_id"),
    EntityKind.VISION: (EntityKind.YEAR, "year_id"),
}


class StrategyViews:
    def __init__(self, store: EntityStore):
        self._store = store

    def build_tree(self) -> list[dict[str, Any]]:
        """Nested years → visions → themes → projects, camelCase keys."""
        visions = self._children(EntityKind.VISION, "year_id")
        themes = self._children(EntityKind.THEME, "vision_id")
        projects = self._children(EntityKind.PROJECT, "theme_id")

        tree = []
        for year in self._store.list(EntityKind.YEAR):
            year_node = entity_to_camel(year)
            year_node["visions"] = []
            for vision in visions.get(year.id, []):
                vision_node = entity_to_camel(vision)
                vision_node["themes"] = []
                for theme in themes.get(vision.id, []):
                    theme_node = entity_to_camel(theme)
                    theme_node["projects"] = [
                        entity_to_camel(p) for p in projects.get(theme.id, [])
                    ]
                    vision_node["themes"].append(theme_node)
                year_node["visions"].append(vision_node)
            tree.append(year_node)
        return tree

    def node_path(self, kind: EntityKind, entity_id: str) -> list[dict[str, Any]]:
        """Breadcrumb from the year down to the node; empty when the node is unknown.

        The walk stops at the first missing ancestor.
        """
        path: list[dict[str, Any]] = []
        entity = self._store.get(kind, entity_id)
        while entity is not None:
            path.insert(0, {"type": entity.kind.value, **entity_to_camel(entity)})
            parent = _PATH_PARENTS.get(entity.kind)
            if parent is None:
                break
            parent_kind, parent_field = parent
            entity = self._store.get(parent_kind, getattr(entity, parent_field))
        return path

    def year_stats(self, year_id: str) -> dict[str, int]:
        vision_ids = {
            v.id for v in self._store.list(EntityKind.VISION) if v.year_id == year_id
        }
        theme_ids = {
            t.id for t in self._store.list(EntityKind.THEME) if t.vision_id in vision_ids
        }
        project_count = sum(
            1 for p in self._store.list(EntityKind.PROJECT) if p.theme_id in theme_ids
        )
        return {
            "visionCount": len(vision_ids),
            "themeCount": len(theme_ids),
            "projectCount": project_count,
        }

    def influences_for_theme(self, theme_id: str) -> list[Influence]:
        return [
            i for i in self._store.list(EntityKind.INFLUENCE)
            if theme_id in i.connected_theme_ids
        ]

    def influences_for_project(self, project_id: str) -> list[Influence]:
        return [
            i for i in self._store.list(EntityKind.INFLUENCE)
            if project_id in i.connected_project_ids
        ]

    def signals_for_influence(self, influence_id: str) -> list[Signal]:
        """Contributing signals, linked from either side."""
        influence = self._store.get(EntityKind.INFLUENCE, influence_id)
        linked = resolve_links(
            self._store,
            EntityKind.SIGNAL,
            influence.signal_ids if influence is not None else (),
        )
        seen = {s.id for s in linked}
        for signal in self._store.list(EntityKind.SIGNAL):
            if signal.id not in seen and influence_id in signal.influence_ids:
                linked.append(signal)
        return linked

    def projects_for_initiative(self, initiative_id: str) -> list[Project]:
        return [
            p for p in self._store.list(EntityKind.PROJECT)
            if p.initiative_id == initiative_id
        ]

    def _children(self, kind: EntityKind, parent_field: str) -> dict[str, list[Entity]]:
        grouped: dict[str, list[Entity]] = {}
        for entity in self._store.list(kind):
            grouped.setdefault(getattr(entity, parent_field), []).append(entity)
        return grouped
