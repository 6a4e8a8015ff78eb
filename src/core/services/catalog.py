"""Catálogo de list nodes, fases y root del backlog.

Se carga una vez al arrancar (ver `bootstrap`) y después solo se lee: la carga
reemplaza las tablas en una sola asignación, así que no hace falta lock.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from core.domain.models import ListNode, Phase

logger = logging.getLogger(__name__)


class Catalog:
    def __init__(self) -> None:
        self._list_nodes: dict[str, ListNode] = {}
        self._phases: dict[str, Phase] = {}
        self.root_work_item: dict[str, Any] | None = None
        self.initialized = False

    def load(
        self,
        *,
        list_nodes: Iterable[ListNode],
        phases: Iterable[Phase],
        root_work_item: dict[str, Any] | None,
    ) -> None:
        self._list_nodes = {node.logical_name: node for node in list_nodes}
        self._phases = {phase.logical_name: phase for phase in phases}
        self.root_work_item = root_work_item
        self.initialized = True
        logger.debug(
            "Catalog loaded: %d list nodes, %d phases", len(self._list_nodes), len(self._phases)
        )

    def list_node(self, logical_name: str) -> ListNode | None:
        return self._list_nodes.get(logical_name)

    def list_nodes_under(self, prefix: str) -> list[ListNode]:
        """List nodes cuyo logical name cuelga de `prefix` (sin incluir el propio prefix)."""

        base = prefix.rstrip(".") + "."
        return [node for name, node in self._list_nodes.items() if name.startswith(base)]

    def phase(self, logical_name: str) -> Phase | None:
        return self._phases.get(logical_name)
