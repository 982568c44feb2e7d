"""Supabase REST gateway — implements the PrimaryStoreGateway interface.

Talks to the PostgREST API that Supabase exposes under ``/rest/v1`` using
httpx. Each entity kind maps to the table named after its collection
(``years``, ``new_restaurants``, ...); rows are addressed with an
``id=eq.<id>`` filter.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from strategy_engine.application.interfaces import IdentityProvider, PrimaryStoreGateway
from strategy_engine.domain.entities import EntityKind
from strategy_engine.domain.exceptions import GatewayError

logger = logging.getLogger(__name__)


class SupabaseRestGateway(PrimaryStoreGateway):
    """Infrastructure adapter — connects to a Supabase/PostgREST project.

    Requests carry the project's anon key as ``apikey``. The bearer token is
    the signed-in actor's credential when there is one, the anon key
    otherwise, so row-level security sees the right role.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        identity: IdentityProvider | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._identity = identity
        self._timeout = timeout
        self._http_client = http_client

    @property
    def gateway_name(self) -> str:
        return "supabase"

    def _get_headers(self, *, prefer: str | None = None) -> dict[str, str]:
        credential = self._identity.current().credential if self._identity else None
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {credential or self._api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _table_url(self, kind: EntityKind) -> str:
        return f"{self._base_url}/rest/v1/{kind.collection}"

    async def _get_client(self) -> httpx.AsyncClient:
        """Return the injected client or create a new one."""
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    async def list(self, kind: EntityKind) -> list[dict[str, Any]]:
        response = await self._request(
            "GET", kind, "list", params={"select": "*", "order": "created_at.asc"}
        )
        data = response.json()
        if not isinstance(data, list):
            raise GatewayError(
                self.gateway_name, "list", "expected a JSON array", entity_kind=kind.value
            )
        logger.debug("Listed %d row(s) from %s", len(data), kind.collection)
        return data

    async def create(self, kind: EntityKind, record: dict[str, Any]) -> None:
        await self._request(
            "POST",
            kind,
            "create",
            entity_id=record.get("id"),
            json=record,
            prefer="return=minimal",
        )
        logger.info("Inserted %s/%s", kind.collection, record.get("id"))

    async def update(self, kind: EntityKind, entity_id: str, fields: dict[str, Any]) -> None:
        await self._request(
            "PATCH",
            kind,
            "update",
            entity_id=entity_id,
            params={"id": f"eq.{entity_id}"},
            json=fields,
            prefer="return=minimal",
        )
        logger.info("Updated %s/%s (%s)", kind.collection, entity_id, ", ".join(fields))

    async def delete(self, kind: EntityKind, entity_id: str) -> None:
        await self._request(
            "DELETE",
            kind,
            "delete",
            entity_id=entity_id,
            params={"id": f"eq.{entity_id}"},
        )
        logger.info("Deleted %s/%s", kind.collection, entity_id)

    async def _request(
        self,
        method: str,
        kind: EntityKind,
        operation: str,
        *,
        entity_id: str | None = None,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> httpx.Response:
        client = await self._get_client()
        should_close = self._http_client is None

        try:
            response = await client.request(
                method,
                self._table_url(kind),
                params=params,
                json=json,
                headers=self._get_headers(prefer=prefer),
            )
        except httpx.HTTPError as e:
            raise GatewayError(
                self.gateway_name,
                operation,
                f"{type(e).__name__}: {e}",
                entity_kind=kind.value,
                entity_id=entity_id,
            ) from e
        finally:
            if should_close:
                await client.aclose()

        if response.status_code >= 400:
            self._raise_gateway_error(response, kind, operation, entity_id)
        return response

    def _raise_gateway_error(
        self,
        response: httpx.Response,
        kind: EntityKind,
        operation: str,
        entity_id: str | None,
    ) -> None:
        """Raise GatewayError from a PostgREST error response."""
        try:
            message = response.json().get("message", response.text)
        except Exception:
            message = response.text

        raise GatewayError(
            self.gateway_name,
            operation,
            message,
            status_code=response.status_code,
            entity_kind=kind.value,
            entity_id=entity_id,
        )
