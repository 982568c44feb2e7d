"""Signal Lite client — implements the SignalGateway interface.

The Signal Lite backend is a small JSON service:

    GET    /signals?limit=&offset=&authorEmail=   → {"signals": [...]}
    PATCH  /signals/{id}                          → updated signal
    DELETE /signals/{id}

Every call carries the actor's bearer token; without one nothing is sent.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from strategy_engine.application.interfaces import SignalGateway
from strategy_engine.domain.entities import EntityKind
from strategy_engine.domain.exceptions import AuthenticationError, GatewayError

logger = logging.getLogger(__name__)


class SignalLiteClient(SignalGateway):
    """Infrastructure adapter — connects to the Signal Lite backend over httpx."""

    def __init__(
        self,
        base_url: str = "https://signal-lite-backend.onrender.com",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._http_client = http_client

    @property
    def gateway_name(self) -> str:
        return "signal_lite"

    @staticmethod
    def _get_headers(token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Return the injected client or create a new one."""
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    async def list(
        self,
        token: str | None,
        *,
        limit: int | None = None,
        offset: int | None = None,
        author_email: str | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {}
        if limit is not None:
            params["limit"] = limit
        if offset is not None:
            params["offset"] = offset
        if author_email:
            params["authorEmail"] = author_email

        response = await self._request("GET", "/signals", "list", token, params=params)
        signals = response.json().get("signals", [])
        logger.debug("Fetched %d signal(s)", len(signals))
        return signals

    async def update(
        self, signal_id: str, fields: dict[str, Any], token: str | None
    ) -> dict[str, Any]:
        response = await self._request(
            "PATCH", f"/signals/{signal_id}", "update", token, signal_id=signal_id, json=fields
        )
        logger.info("Updated signal %s (%s)", signal_id, ", ".join(fields))
        return response.json()

    async def delete(self, signal_id: str, token: str | None) -> None:
        await self._request("DELETE", f"/signals/{signal_id}", "delete", token, signal_id=signal_id)
        logger.info("Deleted signal %s", signal_id)

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        token: str | None,
        *,
        signal_id: str | None = None,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        if not token:
            raise AuthenticationError(self.gateway_name, operation)

        client = await self._get_client()
        should_close = self._http_client is None

        try:
            response = await client.request(
                method,
                f"{self._base_url}{path}",
                params=params,
                json=json,
                headers=self._get_headers(token),
            )
        except httpx.HTTPError as e:
            raise GatewayError(
                self.gateway_name,
                operation,
                f"{type(e).__name__}: {e}",
                entity_kind=EntityKind.SIGNAL.value,
                entity_id=signal_id,
            ) from e
        finally:
            if should_close:
                await client.aclose()

        if response.status_code >= 400:
            self._raise_gateway_error(response, operation, signal_id)
        return response

    def _raise_gateway_error(
        self, response: httpx.Response, operation: str, signal_id: str | None
    ) -> None:
        """Raise GatewayError from a Signal Lite ``{"error": ...}`` response."""
        try:
            message = response.json().get("error", response.text)
        except Exception:
            message = response.text

        raise GatewayError(
            self.gateway_name,
            operation,
            message or f"Failed to {operation} signal",
            status_code=response.status_code,
            entity_kind=EntityKind.SIGNAL.value,
            entity_id=signal_id,
        )
