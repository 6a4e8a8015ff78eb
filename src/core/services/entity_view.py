"""Presentación de una entidad según su formulario de respuesta.

Dos salidas:
- Texto plano (fallback), una línea por campo.
- `EntityAttachment` para destinos con formato rico (Slack / consola Rich).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from core.domain.models import AttachmentField, EntityAttachment, ResponseForm
from core.domain.subtypes import FieldType
from core.services.markup import to_plain_text, to_slack_markup

EMPTY = "[empty]"


def extract_value(raw: Any) -> str:
    """Valor mostrable: referencias por nombre, multi-referencias unidas por comas.

    Cualquier valor falso (`None`, `""`, `0`, `False`) se muestra como `[empty]`.
    """

    if raw is None or raw == "" or (isinstance(raw, (bool, int, float)) and not raw):
        return EMPTY
    if isinstance(raw, dict):
        if raw.get("name"):
            return str(raw["name"])
        if "data" in raw:
            names = [str(item.get("name")) for item in raw.get("data") or [] if isinstance(item, dict)]
            return ",".join(names) if names else EMPTY
    if isinstance(raw, bool):
        return "true"
    return str(raw)


def _phase_name(entity: dict[str, Any]) -> str:
    phase = entity.get("phase")
    if isinstance(phase, dict) and phase.get("name"):
        return str(phase["name"])
    return EMPTY


def slack_date(value: str) -> str:
    """Token de fecha de Slack (`<!date^epoch^...|raw>`); el valor crudo si no es ISO."""

    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return f"<!date^{int(moment.timestamp())}^{{date_num}} {{time_secs}}|{value}>"


def build_fallback_text(entity: dict[str, Any], form: ResponseForm) -> str:
    lines = [f"ID: {entity.get('id')} - {entity.get('name')} - Phase:{_phase_name(entity)}"]
    for descriptor in form.fields():
        value = extract_value(entity.get(descriptor.name))
        if descriptor.type == FieldType.MEMO.value and value != EMPTY:
            value = to_plain_text(value)
        lines.append(f"{descriptor.title}: {value}")
    return "\n".join(lines) + "\n"


def build_attachment(
    entity: dict[str, Any],
    form: ResponseForm,
    *,
    indent_unit_px: int = 40,
) -> EntityAttachment:
    fields: list[AttachmentField] = []
    has_markdown = False
    for descriptor in form.fields():
        value = extract_value(entity.get(descriptor.name))
        if value != EMPTY and descriptor.type == FieldType.DATE_TIME.value:
            value = slack_date(value)
            has_markdown = True
        elif value != EMPTY and descriptor.type == FieldType.MEMO.value:
            value = to_slack_markup(value, indent_unit_px=indent_unit_px)
            has_markdown = True
        fields.append(AttachmentField(title=descriptor.title, value=value, short=descriptor.size == "medium"))

    return EntityAttachment(
        title=f"ID: {entity.get('id')} | {entity.get('name')} | Phase: {_phase_name(entity)}",
        color=form.color,
        fields=fields,
        mrkdwn_in=["fields"] if has_markdown else [],
        fallback=build_fallback_text(entity, form),
    )
