"""Entity intent endpoints — create, read, patch, delete, link, move, sandbox.

Every write returns as soon as the entity store reflects it; the remote
call runs in the background and shows up under /mutations and /events.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from strategy_engine.application.schemas import (
    DeleteResponse,
    EntityCreatedResponse,
    MoveItemRequest,
    SandboxNodeRequest,
    ToggleLinkRequest,
    ToggleLinkResponse,
)
from strategy_engine.application.services import StrategyEngine
from strategy_engine.domain.entities import EntityKind, resolve_kind
from strategy_engine.domain.exceptions import EntityNotFoundError, ValidationError
from strategy_engine.domain.serialization import entity_to_camel, to_camel
from strategy_engine.infrastructure.dependencies import get_engine
from strategy_engine.presentation.api.v1.endpoints.errors import http_error

router = APIRouter(tags=["Entities"])


def _resolve(kind: str):
    try:
        return resolve_kind(kind)
    except ValidationError as e:
        raise http_error(e)


def _get_camel(engine: StrategyEngine, kind: EntityKind, entity_id: str) -> dict[str, Any]:
    entity = engine.store.get(kind, entity_id)
    if entity is None:
        raise http_error(EntityNotFoundError(kind.value, entity_id))
    return entity_to_camel(entity)


@router.post(
    "/entities/{kind}",
    response_model=EntityCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_entity(
    kind: str,
    fields: dict[str, Any] | None = Body(None),
    engine: StrategyEngine = Depends(get_engine),
) -> EntityCreatedResponse:
    """Create a record from seed fields; missing fields take kind defaults."""
    entity_kind, _ = _resolve(kind)
    try:
        entity_id = engine.dispatcher.create(kind, fields or {})
    except ValidationError as e:
        raise http_error(e)
    return EntityCreatedResponse(id=entity_id, kind=entity_kind.value)


@router.get("/entities/{kind}")
async def list_entities(
    kind: str,
    engine: StrategyEngine = Depends(get_engine),
) -> list[dict[str, Any]]:
    """List one collection. Restaurant aliases such as ``facelift`` filter by category."""
    entity_kind, category = _resolve(kind)
    entities = engine.store.list(entity_kind)
    if category is not None:
        entities = [e for e in entities if e.category is category]
    return [entity_to_camel(e) for e in entities]


@router.get("/entities/{kind}/{entity_id}")
async def get_entity(
    kind: str,
    entity_id: str,
    engine: StrategyEngine = Depends(get_engine),
) -> dict[str, Any]:
    entity_kind, _ = _resolve(kind)
    return _get_camel(engine, entity_kind, entity_id)


@router.patch("/entities/{kind}/{entity_id}")
async def update_entity(
    kind: str,
    entity_id: str,
    patch: dict[str, Any] = Body(...),
    engine: StrategyEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Merge a partial patch (camelCase or snake_case keys) into a record."""
    entity_kind, _ = _resolve(kind)
    try:
        engine.dispatcher.update(entity_kind, entity_id, patch)
    except (EntityNotFoundError, ValidationError) as e:
        raise http_error(e)
    return _get_camel(engine, entity_kind, entity_id)


@router.delete("/entities/{kind}/{entity_id}", response_model=DeleteResponse)
async def delete_entity(
    kind: str,
    entity_id: str,
    confirmed: bool = Query(False, description="The user confirmed the deletion"),
    engine: StrategyEngine = Depends(get_engine),
) -> DeleteResponse:
    """Delete a record and everything it owns. Requires ``confirmed=true``."""
    entity_kind, _ = _resolve(kind)
    if engine.store.get(entity_kind, entity_id) is None:
        raise http_error(EntityNotFoundError(entity_kind.value, entity_id))
    if not confirmed:
        raise HTTPException(
            status_code=status.HTTP_428_PRECONDITION_REQUIRED,
            detail="Deletion must be confirmed with confirmed=true",
        )
    deleted = engine.dispatcher.delete(entity_kind, entity_id, skip_confirm=True)
    return DeleteResponse(deleted=deleted)


@router.post(
    "/entities/{kind}/{entity_id}/links/{field}/toggle",
    response_model=ToggleLinkResponse,
)
async def toggle_link(
    kind: str,
    entity_id: str,
    field: str,
    data: ToggleLinkRequest,
    engine: StrategyEngine = Depends(get_engine),
) -> ToggleLinkResponse:
    """Add the target id to a link set, or remove it when already present."""
    entity_kind, _ = _resolve(kind)
    try:
        ids = engine.dispatcher.toggle_link(entity_kind, entity_id, field, data.target_id)
    except (EntityNotFoundError, ValidationError) as e:
        raise http_error(e)
    return ToggleLinkResponse(field=to_camel(field), ids=list(ids))


@router.post("/entities/{kind}/{entity_id}/move")
async def move_entity(
    kind: str,
    entity_id: str,
    data: MoveItemRequest,
    engine: StrategyEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Reparent a tree node, optionally at a position among its new siblings."""
    entity_kind, _ = _resolve(kind)
    try:
        engine.dispatcher.move(entity_kind, entity_id, data.new_parent_id, data.index)
    except (EntityNotFoundError, ValidationError) as e:
        raise http_error(e)
    return _get_camel(engine, entity_kind, entity_id)


@router.post(
    "/sandbox/{kind}",
    response_model=EntityCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_sandbox_node(
    kind: str,
    data: SandboxNodeRequest | None = None,
    engine: StrategyEngine = Depends(get_engine),
) -> EntityCreatedResponse:
    """Drop a new node on the sandbox canvas under the first available parent."""
    position = data.position if data else None
    try:
        entity_id = engine.dispatcher.create_sandbox_node(kind, position)
    except ValidationError as e:
        raise http_error(e)
    entity_kind, _ = _resolve(kind)
    return EntityCreatedResponse(id=entity_id, kind=entity_kind.value)
