"""Subtipos de work item gestionados por el bot.

Por qué una tabla explícita:
- Cada subtipo tiene un nombre de recurso REST, un nombre de entidad (el que usan
  los formularios y las fases) y un color propio. Son un conjunto cerrado, así que
  los declaramos aquí en lugar de derivarlos concatenando strings.
- Los campos editables por chat (create/update) también dependen del subtipo.
"""

from __future__ import annotations

from enum import Enum


class FieldKind(str, Enum):
    """Tipo lógico de un campo editable desde el chat."""

    STRING = "string"
    PARENT = "parent"
    LIST_NODE = "list_node"


class FieldType(str, Enum):
    """`field_type` tal y como lo devuelve la metadata de Octane."""

    STRING = "string"
    INTEGER = "integer"
    REFERENCE = "reference"
    MEMO = "memo"
    BOOLEAN = "boolean"
    DATE_TIME = "date_time"


class Subtype(str, Enum):
    """Subtipos soportados (token que escribe el usuario)."""

    DEFECT = "defect"
    USERSTORY = "userstory"
    FEATURE = "feature"
    EPIC = "epic"

    @classmethod
    def from_token(cls, token: str) -> "Subtype | None":
        """Resuelve el token del chat (case-insensitive); `story` es alias de `userstory`."""

        value = (token or "").strip().lower()
        if value == "story":
            value = cls.USERSTORY.value
        for member in cls:
            if member.value == value:
                return member
        return None

    @classmethod
    def tokens(cls) -> list[str]:
        return [member.value for member in cls]

    @property
    def entity_name(self) -> str:
        """Nombre de entidad en Octane (formularios, fases, metadata)."""

        return _ENTITY_NAMES[self]

    @property
    def resource(self) -> str:
        """Colección REST bajo el workspace (`/defects`, `/stories`, ...)."""

        return _RESOURCES[self]

    @property
    def color(self) -> str:
        return _COLORS[self]

    @property
    def new_phase(self) -> str:
        """Logical name de la fase inicial de una entidad recién creada."""

        return f"phase.{self.entity_name}.new"


_ENTITY_NAMES: dict[Subtype, str] = {
    Subtype.DEFECT: "defect",
    Subtype.USERSTORY: "story",
    Subtype.FEATURE: "feature",
    Subtype.EPIC: "epic",
}

_RESOURCES: dict[Subtype, str] = {
    Subtype.DEFECT: "defects",
    Subtype.USERSTORY: "stories",
    Subtype.FEATURE: "features",
    Subtype.EPIC: "epics",
}

_COLORS: dict[Subtype, str] = {
    Subtype.DEFECT: "#b21646",
    Subtype.USERSTORY: "#ffb000",
    Subtype.FEATURE: "#e57828",
    Subtype.EPIC: "#7425ad",
}

# Campos que el chat puede escribir, por subtipo.
SUBTYPE_FIELDS: dict[Subtype, dict[str, FieldKind]] = {
    Subtype.DEFECT: {
        "feature": FieldKind.PARENT,
        "parent": FieldKind.PARENT,
        "priority": FieldKind.LIST_NODE,
        "severity": FieldKind.LIST_NODE,
        "name": FieldKind.STRING,
        "description": FieldKind.STRING,
    },
    Subtype.USERSTORY: {
        "feature": FieldKind.PARENT,
        "parent": FieldKind.PARENT,
        "name": FieldKind.STRING,
        "description": FieldKind.STRING,
    },
    Subtype.FEATURE: {
        "epic": FieldKind.PARENT,
        "parent": FieldKind.PARENT,
        "priority": FieldKind.LIST_NODE,
        "name": FieldKind.STRING,
        "description": FieldKind.STRING,
    },
    Subtype.EPIC: {
        "name": FieldKind.STRING,
        "description": FieldKind.STRING,
    },
}
