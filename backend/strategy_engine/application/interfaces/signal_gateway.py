"""Abstract Signal Service gateway (port)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class SignalGateway(ABC):
    """Port for the Signal Service — a separate backend behind its own network boundary.

    Every call needs a bearer token. Implementations raise
    AuthenticationError before any network traffic when it is missing.
    Payloads use the service's camelCase field names.
    """

    @property
    @abstractmethod
    def gateway_name(self) -> str:
        ...

    @abstractmethod
    async def list(
        self,
        token: str | None,
        *,
        limit: int | None = None,
        offset: int | None = None,
        author_email: str | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch signals, newest first."""
        ...

    @abstractmethod
    async def update(
        self, signal_id: str, fields: dict[str, Any], token: str | None
    ) -> dict[str, Any]:
        """Patch a signal and return the service's updated copy."""
        ...

    @abstractmethod
    async def delete(self, signal_id: str, token: str | None) -> None:
        ...
