"""Resolución de campos `nombre=valor` para create/update.

Por qué aquí:
- Decide, por subtipo, si un campo es texto, referencia a un padre o valor de una
  lista (list node), y produce el valor concreto o un `FieldError` tipado.
- No modifica ni el esquema ni el catálogo: es seguro llamarlo en paralelo.

Reglas de list nodes:
- El logical name es `list_node.<campo>.<valor>` en minúsculas.
- `critical` se normaliza a `urgent` antes de buscar (así se llama internamente
  en Octane). Al listar alternativas de campos `severity` se hace el camino inverso.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping

from core.domain.errors import FieldError, FieldErrorKind
from core.domain.subtypes import SUBTYPE_FIELDS, FieldKind, Subtype
from core.services.catalog import Catalog

ParentLookup = Callable[[str], Awaitable["dict[str, Any] | None"]]


@dataclass(frozen=True)
class ResolvedField:
    name: str
    kind: FieldKind
    value: Any

    @property
    def needs_parent_lookup(self) -> bool:
        return self.kind is FieldKind.PARENT and not isinstance(self.value, dict)


def list_node_name(field_name: str, raw_value: str) -> str:
    value = raw_value.strip().lower().replace("critical", "urgent", 1)
    return f"list_node.{field_name}.{value}"


class FieldResolver:
    def __init__(
        self,
        catalog: Catalog,
        schemas: Mapping[Subtype, Mapping[str, FieldKind]] | None = None,
    ) -> None:
        self._catalog = catalog
        self._schemas = schemas or SUBTYPE_FIELDS

    def field_kind(self, subtype: Subtype, field_name: str) -> FieldKind | None:
        return self._schemas[subtype].get(field_name.strip().lower())

    def resolve(self, subtype: Subtype, field_name: str, raw_value: str | None) -> ResolvedField | FieldError:
        """Resuelve un campo.

        Para referencias a padre el valor es el ID todavía sin buscar; el caller
        completa la búsqueda con `resolve_parent` dentro de su operación remota.
        """

        name = field_name.strip().lower()
        kind = self.field_kind(subtype, name)
        value = (raw_value or "").strip()
        if kind is None:
            return FieldError(kind=FieldErrorKind.UNKNOWN_FIELD, field=name, value=value)

        if kind is FieldKind.STRING:
            return ResolvedField(name=name, kind=kind, value=value)

        if kind is FieldKind.LIST_NODE:
            node = self._catalog.list_node(list_node_name(name, value))
            if node is None:
                return FieldError(
                    kind=FieldErrorKind.INVALID_ENUM_VALUE,
                    field=name,
                    value=value,
                    alternatives=self.valid_values(name),
                )
            return ResolvedField(name=name, kind=kind, value=node)

        return ResolvedField(name=name, kind=kind, value=value)

    def valid_values(self, field_name: str) -> list[str]:
        values: list[str] = []
        for node in self._catalog.list_nodes_under(f"list_node.{field_name}"):
            value = node.logical_name.rsplit(".", 1)[-1]
            if "severity" in field_name:
                value = value.replace("urgent", "critical")
            values.append(value)
        return values

    async def resolve_parent(self, field: ResolvedField, lookup: ParentLookup) -> ResolvedField | FieldError:
        """Busca el work item padre por ID numérico."""

        parent_id = str(field.value or "").strip()
        parent = await lookup(parent_id) if parent_id.isdigit() else None
        if parent is None:
            return FieldError(kind=FieldErrorKind.PARENT_NOT_FOUND, field=field.name, value=parent_id)
        return ResolvedField(name=field.name, kind=field.kind, value=parent)
