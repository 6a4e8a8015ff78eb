"""Formularios de respuesta por subtipo (qué muestra `get`).

Por qué un registro:
- Cada subtipo tiene su propio `ResponseForm`; los comandos `display`,
  `don't display` y `reset` lo modifican y `get` lo lee.
- La carga inicial usa el formulario de edición por defecto de Octane
  (`is_default == 2`) más la metadata de sus campos (label + tipo).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from core.domain.models import FieldDescriptor, FormSection, ResponseForm
from core.domain.subtypes import Subtype
from core.interfaces.gateway import WorkItemGateway

logger = logging.getLogger(__name__)


@dataclass
class AddFieldsReport:
    added: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    unknown: list[str] = field(default_factory=list)


@dataclass
class RemoveFieldsReport:
    removed: list[str] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)


def descriptor_from_metadata(meta: dict[str, Any], size: str = "medium") -> FieldDescriptor:
    return FieldDescriptor(
        name=meta["name"],
        label=meta.get("label"),
        type=meta.get("field_type"),
        size=size,
    )


def parse_form_layout(form: dict[str, Any]) -> list[FormSection] | None:
    """Secciones de un `form_layout`; `None` si no tiene la estructura esperada."""

    body = form.get("body")
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            return None
    if not isinstance(body, dict):
        return None
    layout = body.get("layout")
    if not isinstance(layout, dict) or not isinstance(layout.get("sections"), list):
        return None

    sections: list[FormSection] = []
    for raw_section in layout["sections"]:
        raw_fields = raw_section.get("fields") if isinstance(raw_section, dict) else None
        descriptors = [
            FieldDescriptor(name=f["name"], size=f.get("size") or "medium")
            for f in raw_fields or []
            if isinstance(f, dict) and f.get("name")
        ]
        sections.append(FormSection(fields=descriptors))
    return sections


class ResponseFormRegistry:
    def __init__(self) -> None:
        self._forms: dict[Subtype, ResponseForm] = {}

    def get(self, subtype: Subtype) -> ResponseForm | None:
        return self._forms.get(subtype)

    def add_fields(
        self,
        subtype: Subtype,
        requested: Sequence[str],
        metadata: Sequence[dict[str, Any]],
        *,
        size: str = "medium",
    ) -> AddFieldsReport:
        form = self._forms.setdefault(subtype, ResponseForm(color=subtype.color))
        by_name = {meta.get("name"): meta for meta in metadata}
        descriptors = [descriptor_from_metadata(by_name[name], size) for name in requested if name in by_name]
        added, skipped = form.add_section(descriptors)
        unknown = [name for name in requested if name not in added and name not in skipped]
        return AddFieldsReport(added=added, skipped=skipped, unknown=unknown)

    def remove_fields(self, subtype: Subtype, targets: Sequence[str], *, by_label: bool = False) -> RemoveFieldsReport:
        report = RemoveFieldsReport()
        form = self._forms.get(subtype)
        for target in targets:
            target = target.strip()
            removed = form.remove_field(target, by_label=by_label) if form else []
            if removed:
                report.removed.extend(descriptor.name for descriptor in removed)
            else:
                report.not_found.append(target)
        return report

    async def load_default(self, subtype: Subtype, gateway: WorkItemGateway) -> bool:
        """Carga el formulario de edición por defecto desde Octane.

        Devuelve False si Octane no tiene un formulario usable (se deja como estaba).
        Los errores remotos se propagan para que el runner los gestione.
        """

        entity = subtype.entity_name
        forms = await gateway.default_form_layouts(entity)
        if not forms:
            logger.warning("No response form was received for entity %s", entity)
            return False
        if len(forms) > 1:
            logger.warning("More than one response form was received for entity %s. Will use the first form", entity)

        sections = parse_form_layout(forms[0])
        if sections is None:
            logger.error("The response form received for %s does not have the expected structure.", entity)
            return False

        color = self._forms[subtype].color if subtype in self._forms else subtype.color
        form = ResponseForm(sections=sections, color=color or subtype.color)
        metadata = await gateway.field_metadata(entity, form.field_names)
        by_name = {meta.get("name"): meta for meta in metadata}
        for descriptor in form.fields():
            meta = by_name.get(descriptor.name)
            if meta:
                descriptor.label = meta.get("label")
                descriptor.type = meta.get("field_type")

        self._forms[subtype] = form
        logger.debug("Response form for %s loaded with %d fields", entity, len(form.field_names))
        return True
