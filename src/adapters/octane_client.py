"""Cliente REST de ALM Octane (implementa `WorkItemGateway`).

Responsabilidad:
- Autenticación por `/authentication/sign_in` (usuario/contraseña o API key);
  la sesión queda en las cookies del cliente httpx.
- CRUD y búsquedas bajo `/api/shared_spaces/<ss>/workspaces/<ws>/...`.
- Traducir respuestas no-2xx a `OctaneApiError` (con el status HTTP, de modo que
  el runner distinga un 401 del resto).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

import httpx

from adapters.http_client import TECH_PREVIEW_HEADERS, build_async_client
from adapters.octane_query import Query
from core.config import AppSettings
from core.domain.errors import RemoteCallError
from core.domain.models import SearchPage

logger = logging.getLogger(__name__)

EDIT_FORM = 2
PAGE_SIZE = 1000


class OctaneApiError(RemoteCallError):
    """Error devuelto por Octane (o de transporte, con `status=None`)."""


class OctaneConfigError(ValueError):
    """Faltan variables de conexión o credenciales."""


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        if body.get("description"):
            return str(body["description"])
        errors = body.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            return str(errors[0].get("description") or errors[0])
    return json.dumps(body)


class OctaneClient:
    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        if not self._settings.has_connection_settings():
            raise OctaneConfigError("missing Octane connection settings (host, shared space, workspace)")
        credentials = self._settings.credentials()
        if credentials is None:
            raise OctaneConfigError("missing Octane credentials (username/password or client id/secret)")
        self._credentials = credentials

        headers = TECH_PREVIEW_HEADERS if self._settings.octane_tech_preview else None
        self._http = build_async_client(
            self._settings,
            base_url=self._settings.octane_base_url,
            extra_headers=headers,
            transport=transport,
        )
        self.workspace_path = (
            f"/api/shared_spaces/{self._settings.octane_sharedspace}"
            f"/workspaces/{self._settings.octane_workspace}"
        )

    async def __aenter__(self) -> "OctaneClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise OctaneApiError(str(exc) or exc.__class__.__name__) from exc
        if response.is_error:
            message = _error_message(response)
            logger.debug("Octane %s %s -> %s: %s", method, path, response.status_code, message)
            raise OctaneApiError(message, status=response.status_code)
        return response

    async def _request(self, method: str, resource: str, **kwargs: Any) -> dict[str, Any]:
        response = await self._send(method, f"{self.workspace_path}/{resource}", **kwargs)
        if not response.content:
            return {}
        return response.json()

    async def _get_all(self, resource: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """GET paginado con `offset`/`limit` hasta cubrir `total_count`.

        El offset avanza con las filas recibidas: Octane puede devolver menos de `limit`.
        """

        items: list[dict[str, Any]] = []
        while True:
            page_params = {**(params or {}), "offset": len(items), "limit": PAGE_SIZE}
            body = await self._request("GET", resource, params=page_params)
            data = list(body.get("data") or [])
            items.extend(data)
            total = body.get("total_count")
            if not data:
                break
            if total is not None and len(items) >= int(total):
                break
            if total is None and len(data) < PAGE_SIZE:
                break
        return items

    async def authenticate(self) -> None:
        await self._send("POST", "/authentication/sign_in", json=self._credentials)
        logger.debug("Authenticated against %s", self._settings.octane_base_url)

    async def get_entity(self, resource: str, entity_id: str, fields: Sequence[str]) -> dict[str, Any] | None:
        try:
            return await self._request("GET", f"{resource}/{entity_id}", params={"fields": ",".join(fields)})
        except OctaneApiError as exc:
            if exc.status == 404:
                return None
            raise

    async def find_work_item(self, entity_id: str) -> dict[str, Any] | None:
        items = await self._get_all("work_items", {"query": str(Query.field("id").equal(entity_id))})
        return items[0] if items else None

    async def search_work_items(self, entity_name: str, text: str, limit: int) -> SearchPage:
        params = {
            "text_search": json.dumps({"type": "global", "text": text}),
            "query": str(Query.field("subtype").equal(entity_name)),
            "limit": limit,
        }
        body = await self._request("GET", "work_items", params=params)
        return SearchPage(items=list(body.get("data") or []), total_count=body.get("total_count"))

    async def create_entity(self, resource: str, entity: dict[str, Any]) -> dict[str, Any]:
        body = await self._request("POST", resource, json={"data": [entity]})
        created = body.get("data") or [body]
        return created[0]

    async def update_entity(self, resource: str, entity_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PUT", f"{resource}/{entity_id}", json=changes)

    async def list_list_nodes(self) -> list[dict[str, Any]]:
        return await self._get_all("list_nodes", {"fields": "id,name,logical_name"})

    async def list_phases(self) -> list[dict[str, Any]]:
        return await self._get_all("phases", {"fields": "id,name,logical_name"})

    async def root_work_item(self) -> dict[str, Any] | None:
        items = await self._get_all("work_items", {"query": str(Query.field("subtype").equal("work_item_root"))})
        return items[0] if items else None

    async def default_form_layouts(self, entity_name: str) -> list[dict[str, Any]]:
        query = Query.field("entity_subtype").equal(entity_name).and_(Query.field("is_default").equal(EDIT_FORM))
        return await self._get_all("form_layouts", {"fields": "body", "query": str(query)})

    async def field_metadata(self, entity_name: str, names: Sequence[str]) -> list[dict[str, Any]]:
        if not names:
            return []
        query = Query.field("entity_name").equal(entity_name).and_(Query.field("name").in_(names))
        return await self._get_all("metadata/fields", {"fields": "label,name,field_type", "query": str(query)})
