"""Abstract Primary Store gateway (port) — tree-and-link entity persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from strategy_engine.domain.entities import EntityKind


class PrimaryStoreGateway(ABC):
    """Port for the Primary Store — implemented in the infrastructure layer.

    Records and patches cross this boundary already translated to the
    store's snake_case column names.
    """

    @property
    @abstractmethod
    def gateway_name(self) -> str:
        """Short name used to tag errors and mutations (e.g. 'supabase')."""
        ...

    @abstractmethod
    async def list(self, kind: EntityKind) -> list[dict[str, Any]]:
        """Return every record of one kind."""
        ...

    @abstractmethod
    async def create(self, kind: EntityKind, record: dict[str, Any]) -> None:
        """Insert a full record.

        Raises:
            GatewayError: If the store rejects the call or is unreachable.
        """
        ...

    @abstractmethod
    async def update(self, kind: EntityKind, entity_id: str, fields: dict[str, Any]) -> None:
        """Apply a partial record to an existing row."""
        ...

    @abstractmethod
    async def delete(self, kind: EntityKind, entity_id: str) -> None:
        """Delete one row by id."""
        ...
