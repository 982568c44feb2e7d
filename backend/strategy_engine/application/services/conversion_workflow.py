"""Signal conversion — materializes a Project or Influence from a Signal.

Both records change locally in one atomic store update. The remote side is
two independent writes, awaited in order: the Primary Store create, then
the Signal Service update. Neither write compensates for the other, so a
partial failure leaves the two backends disagreeing until someone retries
the failed mutation.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from strategy_engine.application.interfaces import (
    IdentityProvider,
    PrimaryStoreGateway,
    SignalGateway,
)
from strategy_engine.application.services.mutation_dispatcher import (
    MutationDispatcher,
    PreparedUpdate,
)
from strategy_engine.application.services.remote_sync import RemoteSyncRunner
from strategy_engine.application.services.sync_events import SyncEventBroker
from strategy_engine.domain.entities import (
    Entity,
    EntityKind,
    InfluenceType,
    MutationOperation,
    MutationStatus,
    PendingMutation,
    ProjectStatus,
    Signal,
    SignalStatus,
)
from strategy_engine.domain.exceptions import (
    ConcurrencyError,
    SignalAlreadyConvertedError,
    ValidationError,
)
from strategy_engine.domain.links import union_links
from strategy_engine.domain.serialization import entity_to_record, fields_to_camel
from strategy_engine.domain.store import EntityStore, with_inserted, with_replaced
from strategy_engine.infrastructure.logging.colored_logger import SyncLogger, SyncStage

logger = logging.getLogger(__name__)
slog = SyncLogger("ConversionWorkflow")


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of a conversion.

    ``signal_patch`` is exactly what was sent to the Signal Service.
    ``failures`` holds the remote mutations that did not go through; the
    local store keeps the converted state regardless.
    """

    signal_id: str
    target_kind: EntityKind
    target_id: str
    signal_patch: dict[str, Any]
    failures: tuple[PendingMutation, ...] = field(default=())

    @property
    def project_id(self) -> str | None:
        return self.target_id if self.target_kind is EntityKind.PROJECT else None

    @property
    def influence_id(self) -> str | None:
        return self.target_id if self.target_kind is EntityKind.INFLUENCE else None

    @property
    def succeeded(self) -> bool:
        return not self.failures


class ConversionWorkflow:
    """Single-flight, two-backend conversion of signals.

    A second conversion for a signal id that is still in flight is rejected
    with ConcurrencyError, never queued.
    """

    def __init__(
        self,
        store: EntityStore,
        dispatcher: MutationDispatcher,
        primary_gateway: PrimaryStoreGateway,
        signal_gateway: SignalGateway,
        identity: IdentityProvider,
        runner: RemoteSyncRunner,
        events: SyncEventBroker | None = None,
    ):
        self._store = store
        self._dispatcher = dispatcher
        self._primary = primary_gateway
        self._signals = signal_gateway
        self._identity = identity
        self._runner = runner
        self._events = events
        self._in_flight: set[str] = set()

    def is_converting(self, signal_id: str) -> bool:
        return signal_id in self._in_flight

    async def convert_to_project(self, signal: Signal | str, theme_id: str) -> ConversionResult:
        """Turn a signal into a Project under ``theme_id``."""
        signal_id = self._claim(signal)
        try:
            current = self._require_convertible(signal_id)
            if not theme_id:
                raise ValidationError("select a theme to convert into", field="theme_id")
            if self._store.get(EntityKind.THEME, theme_id) is None:
                raise ValidationError(f"theme '{theme_id}' does not exist", field="theme_id")

            project = self._dispatcher.build_new(
                EntityKind.PROJECT,
                {
                    "title": current.title,
                    "description": current.body or "",
                    "status": ProjectStatus.IDEA,
                    "theme_id": theme_id,
                    "signal_id": current.id,
                },
            )
            prepared = self._dispatcher.prepare_update(
                EntityKind.SIGNAL,
                signal_id,
                {
                    "status": SignalStatus.CONVERTED,
                    "project_id": project.id,
                    "theme_ids": union_links(current.theme_ids, theme_id),
                },
                conversion=True,
            )
            return await self._commit(project, prepared)
        finally:
            self._in_flight.discard(signal_id)

    async def convert_to_influence(
        self,
        signal: Signal | str,
        influence_type: InfluenceType | str = InfluenceType.EXTERNAL,
    ) -> ConversionResult:
        """Create an Influence of ``influence_type`` with the signal as a contributor."""
        signal_id = self._claim(signal)
        try:
            current = self._require_convertible(signal_id)
            influence = self._dispatcher.build_new(
                EntityKind.INFLUENCE,
                {
                    "title": current.title,
                    "description": current.body or "",
                    "type": influence_type,
                    "signal_ids": (current.id,),
                },
            )
            prepared = self._dispatcher.prepare_update(
                EntityKind.SIGNAL,
                signal_id,
                {
                    "status": SignalStatus.CONVERTED,
                    "influence_id": influence.id,
                    "influence_ids": union_links(current.influence_ids, influence.id),
                },
                conversion=True,
            )
            return await self._commit(influence, prepared)
        finally:
            self._in_flight.discard(signal_id)

    # ── Internals ────────────────────────────────────────────────────

    def _claim(self, signal: Signal | str) -> str:
        signal_id = signal.id if isinstance(signal, Signal) else signal
        if not signal_id:
            raise ValidationError("no signal selected", field="signal_id")
        if signal_id in self._in_flight:
            raise ConcurrencyError(signal_id)
        self._in_flight.add(signal_id)
        return signal_id

    def _require_convertible(self, signal_id: str) -> Signal:
        current = self._store.get(EntityKind.SIGNAL, signal_id)
        if current is None:
            raise ValidationError(f"signal '{signal_id}' does not exist", field="signal_id")
        if current.is_converted:
            raise SignalAlreadyConvertedError(signal_id)
        return current

    async def _commit(self, created: Entity, prepared: PreparedUpdate) -> ConversionResult:
        signal = prepared.updated
        self._store.replace_collections({
            created.kind: with_inserted(self._store.list(created.kind), created),
            EntityKind.SIGNAL: with_replaced(self._store.list(EntityKind.SIGNAL), signal),
        })
        slog.step_start(
            SyncStage.CONVERT,
            f"Converted signal to {created.kind.value} locally",
            signal=signal.id,
            target=created.id,
        )

        record = entity_to_record(created)
        create = PendingMutation(
            operation=MutationOperation.CREATE,
            kind=created.kind,
            entity_id=created.id,
            gateway=self._primary.gateway_name,
            payload=record,
            actor_id=created.created_by,
        )
        self._runner.record(create)
        await self._runner.execute(create, lambda: self._primary.create(created.kind, record))

        token = self._identity.current().credential
        patch = fields_to_camel(prepared.fields)
        update = PendingMutation(
            operation=MutationOperation.UPDATE,
            kind=EntityKind.SIGNAL,
            entity_id=signal.id,
            gateway=self._signals.gateway_name,
            payload=patch,
            actor_id=signal.updated_by,
        )
        self._runner.record(update)
        await self._runner.execute(update, lambda: self._signals.update(signal.id, patch, token))

        failures = tuple(m for m in (create, update) if m.status is MutationStatus.FAILED)
        if failures:
            self._alert(signal.id, created, failures)
        else:
            slog.step_complete(
                SyncStage.CONFIRMED,
                f"Signal conversion to {created.kind.value} confirmed",
                signal=signal.id,
                target=created.id,
            )
        return ConversionResult(
            signal_id=signal.id,
            target_kind=created.kind,
            target_id=created.id,
            signal_patch=patch,
            failures=failures,
        )

    def _alert(
        self, signal_id: str, created: Entity, failures: tuple[PendingMutation, ...]
    ) -> None:
        failed_sides = ", ".join(f"{m.gateway} {m.operation.value}" for m in failures)
        message = (
            f"Conversion of signal '{signal_id}' to {created.kind.value} '{created.id}' "
            f"was applied locally but {failed_sides} failed; the Primary Store and the "
            f"Signal Service may now disagree until the failed call is retried."
        )
        slog.step_error(SyncStage.CONVERT, message)
        if self._events is not None:
            self._events.publish(
                "conversion.failed",
                {
                    "signalId": signal_id,
                    "targetKind": created.kind.value,
                    "targetId": created.id,
                    "message": message,
                    "mutations": [m.to_event() for m in failures],
                },
            )
