"""Strategy engine — the object a UI holds: store, intents, conversions, views."""

import logging
from typing import Any

from strategy_engine.application.interfaces import (
    IdentityProvider,
    PrimaryStoreGateway,
    SignalGateway,
)
from strategy_engine.application.services.conversion_workflow import ConversionWorkflow
from strategy_engine.application.services.hydration_service import HydrationService
from strategy_engine.application.services.mutation_dispatcher import (
    Confirmer,
    MutationDispatcher,
)
from strategy_engine.application.services.remote_sync import RemoteSyncRunner
from strategy_engine.application.services.strategy_views import StrategyViews
from strategy_engine.application.services.sync_events import SyncEventBroker
from strategy_engine.domain.audit import AuditStamper
from strategy_engine.domain.entities import ReconciliationPolicy
from strategy_engine.domain.serialization import entity_to_camel
from strategy_engine.domain.store import EntityStore

logger = logging.getLogger(__name__)


class StrategyEngine:
    """Wires one entity store to the dispatcher, conversion workflow and views.

    The UI reads only ``data()`` and the views, and changes state only
    through ``dispatcher`` and ``conversion``.
    """

    def __init__(
        self,
        primary_gateway: PrimaryStoreGateway,
        signal_gateway: SignalGateway,
        identity: IdentityProvider,
        *,
        store: EntityStore | None = None,
        events: SyncEventBroker | None = None,
        stamper: AuditStamper | None = None,
        confirm: Confirmer | None = None,
        policy: ReconciliationPolicy = ReconciliationPolicy.OPTIMISTIC_NO_ROLLBACK,
        cascade_remote_deletes: bool = False,
        history_size: int = 500,
    ):
        self.store = store or EntityStore()
        self.events = events or SyncEventBroker()
        self.identity = identity
        self.primary_gateway = primary_gateway
        self.signal_gateway = signal_gateway
        self.runner = RemoteSyncRunner(events=self.events, history_size=history_size)
        self.dispatcher = MutationDispatcher(
            self.store,
            primary_gateway,
            signal_gateway,
            identity,
            self.runner,
            stamper=stamper,
            confirm=confirm,
            policy=policy,
            cascade_remote_deletes=cascade_remote_deletes,
        )
        self.conversion = ConversionWorkflow(
            self.store,
            self.dispatcher,
            primary_gateway,
            signal_gateway,
            identity,
            self.runner,
            events=self.events,
        )
        self.hydration = HydrationService(self.store, primary_gateway, signal_gateway, identity)
        self.views = StrategyViews(self.store)

    def data(self) -> dict[str, list[dict[str, Any]]]:
        """The whole store as camelCase JSON, keyed by collection name."""
        return {
            collection: [entity_to_camel(e) for e in entities]
            for collection, entities in self.store.snapshot().items()
        }

    async def shutdown(self) -> None:
        """Let in-flight gateway calls finish, then disconnect event subscribers."""
        pending = self.runner.pending_count
        if pending:
            logger.info("Waiting for %d in-flight gateway call(s)", pending)
        await self.runner.drain()
        await self.events.shutdown()
