"""Read endpoints over the entity store: snapshot, tree, breadcrumbs, stats."""

from typing import Any

from fastapi import APIRouter, Depends

from strategy_engine.application.services import StrategyEngine
from strategy_engine.domain.entities import resolve_kind
from strategy_engine.domain.exceptions import ValidationError
from strategy_engine.infrastructure.dependencies import get_engine
from strategy_engine.presentation.api.v1.endpoints.errors import http_error

router = APIRouter(tags=["Data"])


@router.get("/data")
async def get_data(engine: StrategyEngine = Depends(get_engine)) -> dict[str, list[dict[str, Any]]]:
    """The whole entity store, keyed by collection name."""
    return engine.data()


@router.get("/tree")
async def get_tree(engine: StrategyEngine = Depends(get_engine)) -> list[dict[str, Any]]:
    """Years → visions → themes → projects."""
    return engine.views.build_tree()


@router.get("/years/{year_id}/stats")
async def get_year_stats(
    year_id: str,
    engine: StrategyEngine = Depends(get_engine),
) -> dict[str, int]:
    return engine.views.year_stats(year_id)


@router.get("/path/{kind}/{entity_id}")
async def get_node_path(
    kind: str,
    entity_id: str,
    engine: StrategyEngine = Depends(get_engine),
) -> list[dict[str, Any]]:
    """Breadcrumb from the year down to the node."""
    try:
        entity_kind, _ = resolve_kind(kind)
    except ValidationError as e:
        raise http_error(e)
    return engine.views.node_path(entity_kind, entity_id)
