"""Unit tests for the MutationDispatcher (through the StrategyEngine wiring)."""

from datetime import timedelta

import pytest

from strategy_engine.application.services import StrategyEngine
from strategy_engine.domain.audit import AuditStamper
from strategy_engine.domain.entities import (
    EntityKind,
    Facelift,
    Identity,
    MutationStatus,
    Priority,
    ReconciliationPolicy,
    Signal,
    SignalStatus,
)
from strategy_engine.domain.exceptions import EntityNotFoundError, ValidationError


def _seed_strategy(engine: StrategyEngine) -> dict[str, str]:
    dispatcher = engine.dispatcher
    year = dispatcher.create(EntityKind.YEAR, {"title": "2025"})
    vision = dispatcher.create(EntityKind.VISION, {"yearId": year, "title": "Grow"})
    theme = dispatcher.create(EntityKind.THEME, {"visionId": vision, "title": "Delivery"})
    project = dispatcher.create(EntityKind.PROJECT, {"themeId": theme, "title": "App"})
    return {"year": year, "vision": vision, "theme": theme, "project": project}


def _reverting_engine(primary, signal_service, identity, clock) -> StrategyEngine:
    return StrategyEngine(
        primary,
        signal_service,
        identity,
        stamper=AuditStamper(clock),
        confirm=lambda kind, entity_id: True,
        policy=ReconciliationPolicy.REVERT_ON_FAILURE,
    )


# ── Create ──


@pytest.mark.asyncio
async def test_create_applies_locally_then_calls_primary_store(engine, primary, clock):
    year_id = engine.dispatcher.create(EntityKind.YEAR, {"title": "2025"})

    year = engine.store.get(EntityKind.YEAR, year_id)
    assert year.title == "2025"
    assert year.created_by == "alice"
    assert year.created_at == clock.now
    assert year.updated_at == clock.now

    await engine.runner.drain()
    assert primary.rows[EntityKind.YEAR][year_id]["title"] == "2025"
    assert [m.status for m in engine.runner.history()] == [MutationStatus.CONFIRMED]


@pytest.mark.asyncio
async def test_create_fills_defaults_and_replaces_blank_labels(engine):
    year = engine.dispatcher.create(EntityKind.YEAR, {"title": "2025"})
    vision = engine.dispatcher.create(EntityKind.VISION, {"yearId": year})
    theme = engine.dispatcher.create(EntityKind.THEME, {"visionId": vision, "title": "   "})
    brand = engine.dispatcher.create(EntityKind.BRAND)

    assert engine.store.get(EntityKind.VISION, vision).title == "New vision"
    stored_theme = engine.store.get(EntityKind.THEME, theme)
    assert stored_theme.title == "New theme"
    assert stored_theme.priority is Priority.MEDIUM
    assert engine.store.get(EntityKind.BRAND, brand).name == "New brand"
    await engine.runner.drain()


@pytest.mark.asyncio
async def test_create_rejects_missing_or_dangling_parent(engine, primary):
    with pytest.raises(ValidationError) as exc_info:
        engine.dispatcher.create(EntityKind.VISION, {"title": "Orphan"})
    assert exc_info.value.field == "year_id"

    with pytest.raises(ValidationError):
        engine.dispatcher.create(EntityKind.VISION, {"yearId": "nope"})

    assert engine.store.count(EntityKind.VISION) == 0
    assert primary.calls == []


@pytest.mark.asyncio
async def test_client_supplied_id_and_audit_fields_are_ignored(engine):
    year_id = engine.dispatcher.create(
        EntityKind.YEAR, {"id": "mine", "createdBy": "mallory", "title": "2025"}
    )
    assert year_id != "mine"
    assert engine.store.get(EntityKind.YEAR, year_id).created_by == "alice"
    await engine.runner.drain()


@pytest.mark.asyncio
async def test_signals_cannot_be_created(engine):
    with pytest.raises(ValidationError):
        engine.dispatcher.create(EntityKind.SIGNAL, {"title": "x"})


@pytest.mark.asyncio
async def test_facelift_alias_creates_tagged_restaurant(engine):
    restaurant_id = engine.dispatcher.create("facelift", {"reconstructionScope": "Kitchen"})
    restaurant = engine.store.get(EntityKind.NEW_RESTAURANT, restaurant_id)

    assert isinstance(restaurant, Facelift)
    assert restaurant.title == "New facelift"
    assert restaurant.reconstruction_scope == "Kitchen"

    with pytest.raises(ValidationError):
        engine.dispatcher.update(EntityKind.NEW_RESTAURANT, restaurant_id, {"category": "new"})
    await engine.runner.drain()


def test_alias_rejects_a_conflicting_seed_category(engine):
    with pytest.raises(ValidationError) as exc_info:
        engine.dispatcher.create("facelift", {"category": "new"})

    assert exc_info.value.field == "category"
    assert engine.store.count(EntityKind.NEW_RESTAURANT) == 0


@pytest.mark.asyncio
async def test_alias_accepts_a_matching_seed_category(engine):
    restaurant_id = engine.dispatcher.create("reconstruction", {"category": "facelift"})

    assert isinstance(engine.store.get(EntityKind.NEW_RESTAURANT, restaurant_id), Facelift)
    await engine.runner.drain()


def test_create_outside_an_event_loop_is_recorded_as_failed(engine, primary, events):
    year_id = engine.dispatcher.create(EntityKind.YEAR, {"title": "2025"})

    assert engine.store.get(EntityKind.YEAR, year_id) is not None
    [mutation] = engine.runner.failed()
    assert mutation.entity_id == year_id
    assert "event loop" in mutation.error_message
    assert primary.calls == []
    assert "mutation.failed" in events.types()
    assert engine.runner.pending_count == 0


# ── Update ──


@pytest.mark.asyncio
async def test_update_merges_patch_and_sends_only_changed_columns(engine, primary, clock):
    ids = _seed_strategy(engine)
    await engine.runner.drain()
    clock.advance(minutes=5)

    engine.dispatcher.update(EntityKind.THEME, ids["theme"], {"priority": "high", "brandIds": ["b1"]})

    theme = engine.store.get(EntityKind.THEME, ids["theme"])
    assert theme.priority is Priority.HIGH
    assert theme.brand_ids == ("b1",)
    assert theme.title == "Delivery"
    assert theme.updated_at == clock.now
    assert theme.created_at == clock.now - timedelta(minutes=5)

    await engine.runner.drain()
    update = engine.runner.history()[0]
    assert set(update.payload) == {"priority", "brand_ids", "updated_by", "updated_at"}
    assert update.payload["priority"] == "high"


@pytest.mark.asyncio
async def test_empty_patch_is_a_no_op(engine):
    ids = _seed_strategy(engine)
    await engine.runner.drain()
    version = engine.store.version
    count = len(engine.runner.history())

    engine.dispatcher.update(EntityKind.THEME, ids["theme"], {})

    assert engine.store.version == version
    assert len(engine.runner.history()) == count


@pytest.mark.asyncio
async def test_update_rejects_immutable_and_dangling_fields(engine):
    ids = _seed_strategy(engine)

    with pytest.raises(ValidationError):
        engine.dispatcher.update(EntityKind.THEME, ids["theme"], {"createdBy": "mallory"})
    with pytest.raises(ValidationError):
        engine.dispatcher.update(EntityKind.THEME, ids["theme"], {"visionId": "missing"})
    with pytest.raises(EntityNotFoundError):
        engine.dispatcher.update(EntityKind.THEME, "missing", {"title": "x"})
    await engine.runner.drain()


@pytest.mark.asyncio
async def test_signal_updates_go_to_signal_service_in_camel_case(engine, signal_service, primary):
    engine.store.replace_collection(EntityKind.SIGNAL, [Signal(id="s1", title="Tip")])

    engine.dispatcher.update(EntityKind.SIGNAL, "s1", {"theme_ids": ["t1"]})
    await engine.runner.drain()

    assert signal_service.calls == [("update", "s1", "token-1")]
    assert signal_service.signals["s1"]["themeIds"] == ["t1"]
    assert "updatedBy" in signal_service.signals["s1"]
    assert primary.calls == []


@pytest.mark.asyncio
async def test_converted_signal_keeps_its_conversion(engine):
    engine.store.replace_collection(
        EntityKind.SIGNAL,
        [Signal(id="s1", status=SignalStatus.CONVERTED, project_id="p1")],
    )

    with pytest.raises(ValidationError):
        engine.dispatcher.update(EntityKind.SIGNAL, "s1", {"projectId": "p2"})
    with pytest.raises(ValidationError):
        engine.dispatcher.update(EntityKind.SIGNAL, "s1", {"status": "inbox"})

    engine.dispatcher.update(EntityKind.SIGNAL, "s1", {"themeIds": ["t9"]})
    assert engine.store.get(EntityKind.SIGNAL, "s1").theme_ids == ("t9",)
    await engine.runner.drain()


@pytest.mark.asyncio
async def test_direct_update_cannot_convert_a_signal(engine):
    engine.store.replace_collection(EntityKind.SIGNAL, [Signal(id="s1")])
    with pytest.raises(ValidationError):
        engine.dispatcher.update(EntityKind.SIGNAL, "s1", {"status": "converted"})


@pytest.mark.asyncio
async def test_missing_credential_fails_signal_call_but_keeps_local_state(engine, identity):
    engine.store.replace_collection(EntityKind.SIGNAL, [Signal(id="s1")])
    identity.identity = Identity(actor_id="alice", credential=None)

    engine.dispatcher.update(EntityKind.SIGNAL, "s1", {"status": "triaged"})
    await engine.runner.drain()

    assert engine.store.get(EntityKind.SIGNAL, "s1").status is SignalStatus.TRIAGED
    failed = engine.runner.failed()
    assert len(failed) == 1
    assert "authentication token required" in failed[0].error_message


# ── Links and moves ──


@pytest.mark.asyncio
async def test_toggle_link_twice_restores_original_set(engine):
    ids = _seed_strategy(engine)

    assert engine.dispatcher.toggle_link(EntityKind.PROJECT, ids["project"], "brandIds", "b1") == ("b1",)
    assert engine.dispatcher.toggle_link(EntityKind.PROJECT, ids["project"], "brand_ids", "b1") == ()
    assert engine.store.get(EntityKind.PROJECT, ids["project"]).brand_ids == ()

    with pytest.raises(ValidationError):
        engine.dispatcher.toggle_link(EntityKind.PROJECT, ids["project"], "title", "b1")
    await engine.runner.drain()


@pytest.mark.asyncio
async def test_move_reparents_and_positions_among_siblings(engine):
    ids = _seed_strategy(engine)
    other_vision = engine.dispatcher.create(EntityKind.VISION, {"yearId": ids["year"]})
    first = engine.dispatcher.create(EntityKind.THEME, {"visionId": other_vision, "title": "A"})

    engine.dispatcher.move(EntityKind.THEME, ids["theme"], other_vision, index=0)

    themes = [t for t in engine.store.list(EntityKind.THEME) if t.vision_id == other_vision]
    assert [t.id for t in themes] == [ids["theme"], first]

    with pytest.raises(ValidationError):
        engine.dispatcher.move(EntityKind.BRAND, "b1", "x")
    with pytest.raises(ValidationError):
        engine.dispatcher.move(EntityKind.THEME, ids["theme"], "missing-vision")
    await engine.runner.drain()


@pytest.mark.asyncio
async def test_sandbox_node_defaults_to_first_parent(engine):
    with pytest.raises(ValidationError):
        engine.dispatcher.create_sandbox_node(EntityKind.VISION, {"x": 1, "y": 2})

    ids = _seed_strategy(engine)
    vision_id = engine.dispatcher.create_sandbox_node("vision", {"x": 10, "y": 20})

    vision = engine.store.get(EntityKind.VISION, vision_id)
    assert vision.year_id == ids["year"]
    assert vision.sandbox_position == {"x": 10, "y": 20}

    with pytest.raises(ValidationError):
        engine.dispatcher.create_sandbox_node(EntityKind.LOCATION)
    await engine.runner.drain()


# ── Delete ──


@pytest.mark.asyncio
async def test_deleting_year_cascades_locally(engine, primary):
    ids = _seed_strategy(engine)
    await engine.runner.drain()

    assert engine.dispatcher.delete(EntityKind.YEAR, ids["year"]) is True

    assert engine.store.get(EntityKind.YEAR, ids["year"]) is None
    assert engine.store.get(EntityKind.VISION, ids["vision"]) is None
    assert engine.store.get(EntityKind.THEME, ids["theme"]) is None
    assert engine.store.get(EntityKind.PROJECT, ids["project"]) is None

    await engine.runner.drain()
    deletes = [call for call in primary.calls if call[0] == "delete"]
    assert deletes == [("delete", EntityKind.YEAR, ids["year"])]


@pytest.mark.asyncio
async def test_deleting_brand_keeps_link_holders(engine):
    ids = _seed_strategy(engine)
    brand = engine.dispatcher.create(EntityKind.BRAND, {"name": "Burger Co"})
    location = engine.dispatcher.create(EntityKind.LOCATION, {"brandId": brand})
    engine.dispatcher.toggle_link(EntityKind.PROJECT, ids["project"], "brandIds", brand)
    engine.dispatcher.toggle_link(EntityKind.VISION, ids["vision"], "brandIds", brand)

    engine.dispatcher.delete(EntityKind.BRAND, brand)

    assert engine.store.get(EntityKind.LOCATION, location) is None
    project = engine.store.get(EntityKind.PROJECT, ids["project"])
    assert project is not None
    assert project.brand_ids == (brand,)
    assert engine.store.get(EntityKind.VISION, ids["vision"]) is not None
    await engine.runner.drain()


@pytest.mark.asyncio
async def test_remote_cascade_deletes_deepest_first(primary, signal_service, identity, clock):
    engine = StrategyEngine(
        primary,
        signal_service,
        identity,
        stamper=AuditStamper(clock),
        confirm=lambda kind, entity_id: True,
        cascade_remote_deletes=True,
    )
    ids = _seed_strategy(engine)
    await engine.runner.drain()

    engine.dispatcher.delete(EntityKind.YEAR, ids["year"])
    await engine.runner.drain()

    deleted = [(kind, entity_id) for op, kind, entity_id in primary.calls if op == "delete"]
    assert set(deleted) == {
        (EntityKind.PROJECT, ids["project"]),
        (EntityKind.THEME, ids["theme"]),
        (EntityKind.VISION, ids["vision"]),
        (EntityKind.YEAR, ids["year"]),
    }
    assert not primary.rows[EntityKind.PROJECT]


@pytest.mark.asyncio
async def test_delete_requires_confirmation(primary, signal_service, identity):
    engine = StrategyEngine(primary, signal_service, identity)
    year = engine.dispatcher.create(EntityKind.YEAR)

    assert engine.dispatcher.delete(EntityKind.YEAR, year) is False
    assert engine.store.get(EntityKind.YEAR, year) is not None

    assert engine.dispatcher.delete(EntityKind.YEAR, year, skip_confirm=True) is True
    assert engine.store.get(EntityKind.YEAR, year) is None
    await engine.runner.drain()


@pytest.mark.asyncio
async def test_deleting_unknown_entity_returns_false(engine, primary):
    assert engine.dispatcher.delete(EntityKind.THEME, "ghost") is False
    assert primary.calls == []


# ── Reconciliation ──


@pytest.mark.asyncio
async def test_gateway_failure_keeps_optimistic_state(engine, primary, events):
    primary.fail_operations.add("create")

    year_id = engine.dispatcher.create(EntityKind.YEAR, {"title": "2025"})
    await engine.runner.drain()

    assert engine.store.get(EntityKind.YEAR, year_id) is not None
    [mutation] = engine.runner.failed()
    assert mutation.entity_id == year_id
    assert mutation.attempts == 1
    assert "mutation.failed" in events.types()


@pytest.mark.asyncio
async def test_revert_policy_restores_local_state(primary, signal_service, identity, clock):
    engine = _reverting_engine(primary, signal_service, identity, clock)
    ids = _seed_strategy(engine)
    await engine.runner.drain()

    primary.fail_operations.update({"update", "delete", "create"})
    engine.dispatcher.update(EntityKind.THEME, ids["theme"], {"title": "Renamed"})
    await engine.runner.drain()
    engine.dispatcher.delete(EntityKind.VISION, ids["vision"])
    brand = engine.dispatcher.create(EntityKind.BRAND)
    await engine.runner.drain()

    assert engine.store.get(EntityKind.THEME, ids["theme"]).title == "Delivery"
    assert engine.store.get(EntityKind.VISION, ids["vision"]) is not None
    assert engine.store.get(EntityKind.PROJECT, ids["project"]) is not None
    assert engine.store.get(EntityKind.BRAND, brand) is None
    reverted = engine.runner.history(MutationStatus.REVERTED)
    assert len(reverted) == 3


@pytest.mark.asyncio
async def test_revert_keeps_a_later_successful_update(primary, signal_service, identity, clock):
    engine = _reverting_engine(primary, signal_service, identity, clock)
    ids = _seed_strategy(engine)
    await engine.runner.drain()

    primary.fail_once.add("update")
    engine.dispatcher.update(EntityKind.THEME, ids["theme"], {"title": "First"})
    engine.dispatcher.update(EntityKind.THEME, ids["theme"], {"title": "Second"})
    await engine.runner.drain()

    assert engine.store.get(EntityKind.THEME, ids["theme"]).title == "Second"
    assert primary.rows[EntityKind.THEME][ids["theme"]]["title"] == "Second"
    [failed] = engine.runner.failed()
    assert failed.payload["title"] == "First"
    assert engine.runner.history(MutationStatus.REVERTED) == []


@pytest.mark.asyncio
async def test_revert_restores_only_fields_not_edited_since(
    primary, signal_service, identity, clock
):
    engine = _reverting_engine(primary, signal_service, identity, clock)
    ids = _seed_strategy(engine)
    await engine.runner.drain()

    primary.fail_once.add("update")
    engine.dispatcher.update(EntityKind.THEME, ids["theme"], {"title": "Renamed"})
    engine.dispatcher.update(EntityKind.THEME, ids["theme"], {"priority": "low"})
    await engine.runner.drain()

    theme = engine.store.get(EntityKind.THEME, ids["theme"])
    assert theme.title == "Delivery"
    assert theme.priority is Priority.LOW
    [reverted] = engine.runner.history(MutationStatus.REVERTED)
    assert reverted.payload["title"] == "Renamed"


@pytest.mark.asyncio
async def test_reverted_create_takes_records_created_under_it(
    primary, signal_service, identity, clock
):
    engine = _reverting_engine(primary, signal_service, identity, clock)
    primary.fail_once.add("create")

    year = engine.dispatcher.create(EntityKind.YEAR, {"title": "2025"})
    vision = engine.dispatcher.create(EntityKind.VISION, {"yearId": year})
    engine.dispatcher.create(EntityKind.THEME, {"visionId": vision})
    await engine.runner.drain()

    for kind in (EntityKind.YEAR, EntityKind.VISION, EntityKind.THEME):
        assert engine.store.count(kind) == 0
    [reverted] = engine.runner.history(MutationStatus.REVERTED)
    assert reverted.entity_id == year
