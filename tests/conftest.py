from __future__ import annotations

import json
from typing import Any, Sequence

import pytest

from core.config import AppSettings
from core.domain.errors import RemoteCallError
from core.domain.models import ChatMessage, EntityAttachment, ListNode, Phase, SearchPage
from core.services.catalog import Catalog


LIST_NODES = [
    {"id": "ln-1", "logical_name": "list_node.severity", "name": "Severity"},
    {"id": "ln-2", "logical_name": "list_node.severity.urgent", "name": "Urgent"},
    {"id": "ln-3", "logical_name": "list_node.severity.high", "name": "High"},
    {"id": "ln-4", "logical_name": "list_node.severity.medium", "name": "Medium"},
    {"id": "ln-5", "logical_name": "list_node.severity.low", "name": "Low"},
    {"id": "ln-6", "logical_name": "list_node.priority.urgent", "name": "Urgent"},
    {"id": "ln-7", "logical_name": "list_node.priority.high", "name": "High"},
]

PHASES = [
    {"id": "ph-1", "logical_name": "phase.defect.new", "name": "New", "type": "phase"},
    {"id": "ph-2", "logical_name": "phase.story.new", "name": "New", "type": "phase"},
    {"id": "ph-3", "logical_name": "phase.feature.new", "name": "New", "type": "phase"},
    {"id": "ph-4", "logical_name": "phase.epic.new", "name": "New", "type": "phase"},
]

ROOT = {"id": "1001", "type": "work_item"}


def form_layout(*sections: Sequence[tuple[str, str]]) -> dict[str, Any]:
    body = {"layout": {"sections": [{"fields": [{"name": n, "size": s} for n, s in section]} for section in sections]}}
    return {"body": json.dumps(body)}


FIELD_METADATA = {
    "defect": [
        {"name": "severity", "label": "Severity", "field_type": "reference"},
        {"name": "description", "label": "Description", "field_type": "memo"},
        {"name": "owner", "label": "Owner", "field_type": "reference"},
        {"name": "creation_time", "label": "Creation Time", "field_type": "date_time"},
    ],
    "story": [
        {"name": "story_points", "label": "Story Points", "field_type": "integer"},
    ],
    "feature": [
        {"name": "description", "label": "Description", "field_type": "memo"},
    ],
}


class FakeGateway:
    """Gateway en memoria con las mismas firmas que `OctaneClient`."""

    def __init__(self) -> None:
        self.entities: dict[tuple[str, str], dict[str, Any]] = {
            ("defects", "5"): {
                "id": "5",
                "name": "Login fails",
                "phase": {"type": "phase", "id": "ph-1", "name": "New"},
                "severity": {"type": "list_node", "id": "ln-3", "name": "High"},
                "description": "<p>Steps: <b>click</b></p>",
            },
        }
        self.work_items: dict[str, dict[str, Any]] = {
            "2001": {"id": "2001", "type": "work_item", "subtype": "epic"},
            "3001": {"id": "3001", "type": "work_item", "subtype": "feature"},
        }
        self.list_nodes = list(LIST_NODES)
        self.phases = list(PHASES)
        self.root: dict[str, Any] | None = dict(ROOT)
        self.forms: dict[str, list[dict[str, Any]]] = {
            "defect": [form_layout([("severity", "medium"), ("description", "large")])],
            "story": [form_layout([("story_points", "medium")])],
            "feature": [form_layout([("description", "large")])],
        }
        self.metadata = FIELD_METADATA
        self.search_page = SearchPage(items=[], total_count=0)

        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.auth_calls = 0
        self.unauthorized_once = False
        self.fail_with: RemoteCallError | None = None
        self.next_id = 9000

    def _call(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if self.unauthorized_once:
            self.unauthorized_once = False
            raise RemoteCallError("session expired", status=401)
        if self.fail_with is not None:
            raise self.fail_with

    def calls_to(self, name: str) -> list[tuple[Any, ...]]:
        return [args for call, args in self.calls if call == name]

    async def authenticate(self) -> None:
        self.auth_calls += 1

    async def get_entity(self, resource: str, entity_id: str, fields: Sequence[str]) -> dict[str, Any] | None:
        self._call("get_entity", resource, entity_id, list(fields))
        entity = self.entities.get((resource, entity_id))
        if entity is None:
            return None
        return {k: v for k, v in entity.items() if k in fields}

    async def find_work_item(self, entity_id: str) -> dict[str, Any] | None:
        self._call("find_work_item", entity_id)
        return self.work_items.get(entity_id)

    async def search_work_items(self, entity_name: str, text: str, limit: int) -> SearchPage:
        self._call("search_work_items", entity_name, text, limit)
        return self.search_page

    async def create_entity(self, resource: str, entity: dict[str, Any]) -> dict[str, Any]:
        self._call("create_entity", resource, entity)
        self.next_id += 1
        return {"id": str(self.next_id), **entity}

    async def update_entity(self, resource: str, entity_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        self._call("update_entity", resource, entity_id, changes)
        return {"id": entity_id, **changes}

    async def list_list_nodes(self) -> list[dict[str, Any]]:
        self._call("list_list_nodes")
        return self.list_nodes

    async def list_phases(self) -> list[dict[str, Any]]:
        self._call("list_phases")
        return self.phases

    async def root_work_item(self) -> dict[str, Any] | None:
        self._call("root_work_item")
        return self.root

    async def default_form_layouts(self, entity_name: str) -> list[dict[str, Any]]:
        self._call("default_form_layouts", entity_name)
        return self.forms.get(entity_name, [])

    async def field_metadata(self, entity_name: str, names: Sequence[str]) -> list[dict[str, Any]]:
        self._call("field_metadata", entity_name, list(names))
        return [meta for meta in self.metadata.get(entity_name, []) if meta["name"] in names]


class RecordingSink:
    def __init__(self, *, supports_attachments: bool = True, attachment_ok: bool = True) -> None:
        self.supports_attachments = supports_attachments
        self.attachment_ok = attachment_ok
        self.replies: list[str] = []
        self.sent: list[str] = []
        self.attachments: list[EntityAttachment] = []

    async def reply(self, message: ChatMessage, text: str) -> None:
        self.replies.append(text)

    async def send(self, message: ChatMessage, text: str) -> None:
        self.sent.append(text)

    async def send_attachment(self, message: ChatMessage, attachment: EntityAttachment) -> bool:
        self.attachments.append(attachment)
        return self.attachment_ok


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        octane_host="octane.example.com",
        octane_sharedspace="1001",
        octane_workspace="1002",
        octane_username="bot",
        octane_password="secret",
    )


@pytest.fixture
def catalog() -> Catalog:
    catalog = Catalog()
    catalog.load(
        list_nodes=[ListNode.model_validate(item) for item in LIST_NODES],
        phases=[Phase.model_validate(item) for item in PHASES],
        root_work_item=dict(ROOT),
    )
    return catalog


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


def message(text: str, user: str = "alice") -> ChatMessage:
    return ChatMessage(user=user, text=text, room="C123")
