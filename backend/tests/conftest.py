"""Shared in-memory fakes and fixtures for the strategy engine tests."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from strategy_engine.application.interfaces import (
    IdentityProvider,
    PrimaryStoreGateway,
    SignalGateway,
)
from strategy_engine.application.services import StrategyEngine, SyncEventBroker
from strategy_engine.domain.audit import AuditStamper
from strategy_engine.domain.entities import PRIMARY_KINDS, EntityKind, Identity
from strategy_engine.domain.exceptions import AuthenticationError, GatewayError


class FakePrimaryStore(PrimaryStoreGateway):
    """In-memory Primary Store that records every call.

    Operations named in ``fail_operations`` raise GatewayError; those in
    ``fail_once`` raise on their next call only. While ``hold`` is set,
    create calls wait on it.
    """

    def __init__(self):
        self.rows: dict[EntityKind, dict[str, dict[str, Any]]] = {k: {} for k in PRIMARY_KINDS}
        self.calls: list[tuple[str, EntityKind, str | None]] = []
        self.fail_operations: set[str] = set()
        self.fail_once: set[str] = set()
        self.hold: asyncio.Event | None = None

    @property
    def gateway_name(self) -> str:
        return "fake_primary"

    def _check(self, operation: str, kind: EntityKind, entity_id: str | None) -> None:
        self.calls.append((operation, kind, entity_id))
        if operation in self.fail_once:
            self.fail_once.discard(operation)
        elif operation not in self.fail_operations:
            return
        raise GatewayError(
            self.gateway_name, operation, "boom",
            status_code=500, entity_kind=kind.value, entity_id=entity_id,
        )

    async def list(self, kind: EntityKind) -> list[dict[str, Any]]:
        self._check("list", kind, None)
        return [dict(row) for row in self.rows[kind].values()]

    async def create(self, kind: EntityKind, record: dict[str, Any]) -> None:
        if self.hold is not None:
            await self.hold.wait()
        self._check("create", kind, record["id"])
        self.rows[kind][record["id"]] = dict(record)

    async def update(self, kind: EntityKind, entity_id: str, fields: dict[str, Any]) -> None:
        self._check("update", kind, entity_id)
        self.rows[kind].setdefault(entity_id, {"id": entity_id}).update(fields)

    async def delete(self, kind: EntityKind, entity_id: str) -> None:
        self._check("delete", kind, entity_id)
        self.rows[kind].pop(entity_id, None)


class FakeSignalService(SignalGateway):
    """In-memory Signal Service; calls without a token never reach it."""

    def __init__(self):
        self.signals: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str | None, str | None]] = []
        self.fail_operations: set[str] = set()

    @property
    def gateway_name(self) -> str:
        return "fake_signals"

    def _check(self, operation: str, signal_id: str | None, token: str | None) -> None:
        if not token:
            raise AuthenticationError(self.gateway_name, operation)
        self.calls.append((operation, signal_id, token))
        if operation in self.fail_operations:
            raise GatewayError(
                self.gateway_name, operation, "unavailable",
                status_code=503, entity_kind="signal", entity_id=signal_id,
            )

    async def list(self, token, *, limit=None, offset=None, author_email=None):
        self._check("list", None, token)
        signals = [dict(s) for s in self.signals.values()]
        if author_email:
            signals = [s for s in signals if s.get("authorEmail") == author_email]
        return signals

    async def update(self, signal_id, fields, token):
        self._check("update", signal_id, token)
        self.signals.setdefault(signal_id, {"id": signal_id}).update(fields)
        return dict(self.signals[signal_id])

    async def delete(self, signal_id, token):
        self._check("delete", signal_id, token)
        self.signals.pop(signal_id, None)


class FakeIdentity(IdentityProvider):
    def __init__(self, actor_id: str | None = "alice", credential: str | None = "token-1"):
        self.identity = Identity(actor_id=actor_id, credential=credential)

    def current(self) -> Identity:
        return self.identity


class FixedClock:
    """Deterministic clock; ``advance`` moves it forward."""

    def __init__(self, start: datetime = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class RecordingBroker(SyncEventBroker):
    """Event broker that also keeps every published event."""

    def __init__(self):
        super().__init__()
        self.published: list[tuple[str, dict[str, Any]]] = []

    def publish(self, event_type: str, data: dict[str, Any]) -> None:
        self.published.append((event_type, data))
        super().publish(event_type, data)

    def types(self) -> list[str]:
        return [event_type for event_type, _ in self.published]


@pytest.fixture
def primary() -> FakePrimaryStore:
    return FakePrimaryStore()


@pytest.fixture
def signal_service() -> FakeSignalService:
    return FakeSignalService()


@pytest.fixture
def identity() -> FakeIdentity:
    return FakeIdentity()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def events() -> RecordingBroker:
    return RecordingBroker()


@pytest.fixture
def engine(primary, signal_service, identity, clock, events) -> StrategyEngine:
    """Engine over fakes that confirms every deletion."""
    return StrategyEngine(
        primary,
        signal_service,
        identity,
        events=events,
        stamper=AuditStamper(clock),
        confirm=lambda kind, entity_id: True,
    )
