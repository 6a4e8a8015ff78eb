"""Contrato del gateway de work items.

El Core habla con Octane solo a través de este Protocol. Los métodos lanzan
`RemoteCallError` (o una subclase) ante cualquier fallo remoto.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable

from core.domain.models import SearchPage


@runtime_checkable
class WorkItemGateway(Protocol):
    async def authenticate(self) -> None:
        ...

    async def get_entity(self, resource: str, entity_id: str, fields: Sequence[str]) -> dict[str, Any] | None:
        ...

    async def find_work_item(self, entity_id: str) -> dict[str, Any] | None:
        ...

    async def search_work_items(self, entity_name: str, text: str, limit: int) -> SearchPage:
        ...

    async def create_entity(self, resource: str, entity: dict[str, Any]) -> dict[str, Any]:
        ...

    async def update_entity(self, resource: str, entity_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        ...

    async def list_list_nodes(self) -> list[dict[str, Any]]:
        ...

    async def list_phases(self) -> list[dict[str, Any]]:
        ...

    async def root_work_item(self) -> dict[str, Any] | None:
        ...

    async def default_form_layouts(self, entity_name: str) -> list[dict[str, Any]]:
        ...

    async def field_metadata(self, entity_name: str, names: Sequence[str]) -> list[dict[str, Any]]:
        ...
