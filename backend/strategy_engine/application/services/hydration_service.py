"""Hydration — fills the entity store from both remote backends."""

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from strategy_engine.application.interfaces import (
    IdentityProvider,
    PrimaryStoreGateway,
    SignalGateway,
)
from strategy_engine.domain.entities import PRIMARY_KINDS, Entity, EntityKind
from strategy_engine.domain.exceptions import ValidationError
from strategy_engine.domain.serialization import record_to_entity
from strategy_engine.domain.store import EntityStore
from strategy_engine.infrastructure.logging.colored_logger import SyncLogger, SyncStage

logger = logging.getLogger(__name__)
slog = SyncLogger("HydrationService")


class HydrationService:
    """Loads remote records and swaps them into the store.

    Records that cannot be turned into entities are skipped with a
    warning; one bad row never blocks the rest of a collection.
    """

    def __init__(
        self,
        store: EntityStore,
        primary_gateway: PrimaryStoreGateway,
        signal_gateway: SignalGateway,
        identity: IdentityProvider,
    ):
        self._store = store
        self._primary = primary_gateway
        self._signals = signal_gateway
        self._identity = identity

    async def load_all(self) -> dict[str, int]:
        """List every Primary Store kind concurrently and replace all collections at once.

        Returns:
            Loaded record count per collection name.
        """
        with slog.timed_step(SyncStage.HYDRATE, "Loading primary store"):
            results = await asyncio.gather(
                *(self._primary.list(kind) for kind in PRIMARY_KINDS)
            )

        collections = {
            kind: self._parse(kind, records) for kind, records in zip(PRIMARY_KINDS, results)
        }
        self._store.replace_collections(collections)

        counts = {kind.collection: len(entities) for kind, entities in collections.items()}
        slog.stats(**counts)
        return counts

    async def refresh_signals(
        self,
        *,
        limit: int | None = None,
        offset: int | None = None,
        author_email: str | None = None,
    ) -> int:
        """Replace the signals collection with the Signal Service's current list."""
        token = self._identity.current().credential
        with slog.timed_step(SyncStage.HYDRATE, "Loading signals"):
            records = await self._signals.list(
                token, limit=limit, offset=offset, author_email=author_email
            )
        signals = self._parse(EntityKind.SIGNAL, records)
        self._store.replace_collection(EntityKind.SIGNAL, signals)
        slog.stats(signals=len(signals))
        return len(signals)

    @staticmethod
    def _parse(kind: EntityKind, records: Iterable[dict[str, Any]]) -> list[Entity]:
        entities = []
        for record in records:
            try:
                entities.append(record_to_entity(kind, record))
            except ValidationError as e:
                logger.warning("Skipping malformed %s record %r: %s", kind.value, record.get("id"), e)
        return entities
