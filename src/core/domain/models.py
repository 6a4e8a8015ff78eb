"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Las respuestas de Octane traen muchos campos que no nos interesan; `extra="ignore"`
  permite validarlas tal cual llegan.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class CatalogEntry(BaseModel):
    """Entrada de catálogo identificada por un logical name con puntos."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(
        ...,
        description="ID de la entidad en Octane.",
    )
    logical_name: str = Field(
        ...,
        min_length=1,
        description="Nombre lógico estable (p.ej. 'list_node.severity.high').",
    )
    name: str | None = Field(
        default=None,
        description="Nombre visible en la UI de Octane.",
    )
    type: str = Field(
        default="list_node",
        description="Tipo de entidad Octane ('list_node', 'phase').",
    )

    def as_reference(self) -> dict[str, str]:
        """Referencia mínima para payloads de create/update."""

        return {"type": self.type, "id": self.id}


class ListNode(CatalogEntry):
    """Valor permitido de un campo enumerado."""


class Phase(CatalogEntry):
    """Fase del workflow de una entidad."""

    type: str = Field(default="phase")


class FieldDescriptor(BaseModel):
    """Campo mostrado en un formulario de respuesta."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, description="Nombre técnico del campo.")
    label: str | None = Field(default=None, description="Etiqueta visible.")
    type: str | None = Field(default=None, description="`field_type` de la metadata.")
    size: str = Field(default="medium", description="Tamaño de display ('medium'/'large').")

    @property
    def title(self) -> str:
        return self.label or self.name


class FormSection(BaseModel):
    model_config = ConfigDict(extra="ignore")

    fields: list[FieldDescriptor] = Field(default_factory=list)


class ResponseForm(BaseModel):
    """Formulario de respuesta de un subtipo: qué campos se muestran y cómo.

    Invariante:
    - `field_names` es siempre la unión aplanada (y ordenada) de los campos de
      todas las secciones; por eso se calcula y no se guarda.
    """

    sections: list[FormSection] = Field(default_factory=list)
    color: str | None = Field(default=None, description="Color del attachment de Slack.")

    @property
    def field_names(self) -> list[str]:
        return [f.name for section in self.sections for f in section.fields]

    def fields(self) -> list[FieldDescriptor]:
        return [f for section in self.sections for f in section.fields]

    def is_empty(self) -> bool:
        return not self.field_names

    def add_section(self, descriptors: list[FieldDescriptor]) -> tuple[list[str], list[str]]:
        """Añade una sección nueva con los campos que no estén ya presentes.

        Devuelve `(added, skipped)`.
        """

        present = set(self.field_names)
        added: list[str] = []
        skipped: list[str] = []
        section = FormSection()
        for descriptor in descriptors:
            if descriptor.name in present:
                skipped.append(descriptor.name)
                continue
            present.add(descriptor.name)
            added.append(descriptor.name)
            section.fields.append(descriptor)
        if section.fields:
            self.sections.append(section)
        return added, skipped

    def remove_field(self, target: str, *, by_label: bool = False) -> list[FieldDescriptor]:
        """Quita los campos cuyo nombre (o etiqueta) coincide sin distinguir mayúsculas."""

        wanted = target.strip().casefold()
        removed: list[FieldDescriptor] = []
        kept_sections: list[FormSection] = []
        for section in self.sections:
            kept: list[FieldDescriptor] = []
            for descriptor in section.fields:
                key = descriptor.label if by_label else descriptor.name
                if key is not None and key.casefold() == wanted:
                    removed.append(descriptor)
                else:
                    kept.append(descriptor)
            if kept:
                kept_sections.append(FormSection(fields=kept))
        self.sections = kept_sections
        return removed


class ChatMessage(BaseModel):
    """Mensaje entrante desde el chat."""

    user: str = Field(..., min_length=1, description="Usuario que escribe.")
    text: str = Field(default="", description="Texto crudo del mensaje.")
    room: str | None = Field(default=None, description="Canal/sala de origen.")


class AttachmentField(BaseModel):
    title: str
    value: str
    short: bool = False


class EntityAttachment(BaseModel):
    """Representación enriquecida de una entidad (estilo attachment de Slack)."""

    title: str
    color: str | None = None
    fields: list[AttachmentField] = Field(default_factory=list)
    mrkdwn_in: list[str] = Field(default_factory=list)
    fallback: str = Field(default="", description="Texto plano equivalente.")

    def to_slack(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class SearchPage(BaseModel):
    """Página de resultados de una búsqueda global."""

    items: list[dict[str, Any]] = Field(default_factory=list)
    total_count: int | None = None
