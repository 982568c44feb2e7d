"""Unit tests for the ConversionWorkflow."""

import asyncio

import pytest

from strategy_engine.application.services import StrategyEngine
from strategy_engine.domain.entities import (
    EntityKind,
    InfluenceType,
    MutationStatus,
    ProjectStatus,
    Signal,
    SignalStatus,
    Theme,
)
from strategy_engine.domain.exceptions import (
    ConcurrencyError,
    SignalAlreadyConvertedError,
    ValidationError,
)


@pytest.fixture
def seeded(engine: StrategyEngine) -> StrategyEngine:
    engine.store.replace_collections({
        EntityKind.THEME: [Theme(id="t1", vision_id="v1", title="Delivery")],
        EntityKind.SIGNAL: [
            Signal(id="s1", title="Ghost kitchens", body="Seen downtown", theme_ids=("t1",)),
            Signal(id="s2", title="Loyalty app", status=SignalStatus.INBOX),
        ],
    })
    return engine


@pytest.mark.asyncio
async def test_convert_to_project_links_theme_without_duplicates(seeded, primary, signal_service):
    result = await seeded.conversion.convert_to_project("s1", "t1")

    project = seeded.store.get(EntityKind.PROJECT, result.project_id)
    assert project.theme_id == "t1"
    assert project.status is ProjectStatus.IDEA
    assert project.title == "Ghost kitchens"
    assert project.description == "Seen downtown"
    assert project.signal_id == "s1"
    assert project.brand_ids == ()

    assert result.signal_patch["themeIds"] == ["t1"]
    assert result.signal_patch["status"] == "converted"
    assert result.signal_patch["projectId"] == project.id

    signal = seeded.store.get(EntityKind.SIGNAL, "s1")
    assert signal.is_converted
    assert signal.project_id == project.id
    assert signal.theme_ids == ("t1",)

    assert result.succeeded
    assert project.id in primary.rows[EntityKind.PROJECT]
    assert signal_service.signals["s1"]["projectId"] == project.id


@pytest.mark.asyncio
async def test_remote_writes_run_in_order(seeded, primary, signal_service):
    await seeded.conversion.convert_to_project("s2", "t1")

    history = list(reversed(seeded.runner.history()))
    assert [(m.kind, m.gateway) for m in history] == [
        (EntityKind.PROJECT, primary.gateway_name),
        (EntityKind.SIGNAL, signal_service.gateway_name),
    ]
    assert all(m.status is MutationStatus.CONFIRMED for m in history)


@pytest.mark.asyncio
async def test_second_conversion_is_rejected(seeded):
    first = await seeded.conversion.convert_to_project("s1", "t1")

    with pytest.raises(SignalAlreadyConvertedError):
        await seeded.conversion.convert_to_project("s1", "t1")

    assert seeded.store.count(EntityKind.PROJECT) == 1
    assert seeded.store.get(EntityKind.SIGNAL, "s1").project_id == first.project_id
    assert not seeded.conversion.is_converting("s1")


@pytest.mark.asyncio
async def test_concurrent_conversion_of_same_signal_is_rejected(seeded, primary):
    primary.hold = asyncio.Event()

    first = asyncio.create_task(seeded.conversion.convert_to_project("s1", "t1"))
    await asyncio.sleep(0)
    assert seeded.conversion.is_converting("s1")

    with pytest.raises(ConcurrencyError):
        await seeded.conversion.convert_to_influence("s1", InfluenceType.EXTERNAL)

    primary.hold.set()
    result = await first
    assert result.succeeded
    assert seeded.store.count(EntityKind.PROJECT) == 1
    assert seeded.store.count(EntityKind.INFLUENCE) == 0


@pytest.mark.asyncio
async def test_missing_signal_or_theme_is_rejected_before_any_change(seeded, primary):
    version = seeded.store.version

    with pytest.raises(ValidationError):
        await seeded.conversion.convert_to_project("nope", "t1")
    with pytest.raises(ValidationError):
        await seeded.conversion.convert_to_project("s1", "")
    with pytest.raises(ValidationError):
        await seeded.conversion.convert_to_project("s1", "missing-theme")

    assert seeded.store.version == version
    assert primary.calls == []
    assert not seeded.conversion.is_converting("s1")


@pytest.mark.asyncio
async def test_convert_to_influence_links_signal_both_ways(seeded):
    result = await seeded.conversion.convert_to_influence("s2", "external")

    influence = seeded.store.get(EntityKind.INFLUENCE, result.influence_id)
    assert influence.type is InfluenceType.EXTERNAL
    assert influence.signal_ids == ("s2",)

    signal = seeded.store.get(EntityKind.SIGNAL, "s2")
    assert signal.is_converted
    assert signal.influence_id == influence.id
    assert signal.influence_ids == (influence.id,)

    contributors = seeded.views.signals_for_influence(influence.id)
    assert [s.id for s in contributors] == ["s2"]


@pytest.mark.asyncio
async def test_partial_failure_keeps_local_state_and_alerts(seeded, primary, signal_service, events):
    primary.fail_operations.add("create")

    result = await seeded.conversion.convert_to_project("s1", "t1")

    assert not result.succeeded
    [failure] = result.failures
    assert failure.kind is EntityKind.PROJECT
    assert seeded.store.get(EntityKind.PROJECT, result.project_id) is not None
    assert seeded.store.get(EntityKind.SIGNAL, "s1").is_converted
    # The signal update is still attempted.
    assert signal_service.calls == [("update", "s1", "token-1")]

    alerts = [data for event_type, data in events.published if event_type == "conversion.failed"]
    assert len(alerts) == 1
    assert alerts[0]["signalId"] == "s1"
    assert "disagree" in alerts[0]["message"]


@pytest.mark.asyncio
async def test_signal_service_failure_is_reported_too(seeded, signal_service):
    signal_service.fail_operations.add("update")

    result = await seeded.conversion.convert_to_influence("s2", InfluenceType.INTERNAL)

    assert [m.gateway for m in result.failures] == [signal_service.gateway_name]
    assert seeded.runner.get(result.failures[0].id).status is MutationStatus.FAILED
