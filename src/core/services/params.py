"""Parser de argumentos `key=value,key=value` de los comandos del chat.

- Las comas escapadas (`\\,`) forman parte del valor.
- Un segmento sin `=` produce la clave con valor `None`; el caller lo reporta
  como "missing value".
"""

from __future__ import annotations

import re
from typing import Mapping

_UNESCAPED_COMMA_RE = re.compile(r"(?<!\\),")
_ESCAPED_COMMA = "\\,"


def parse_params(text: str) -> dict[str, str | None]:
    result: dict[str, str | None] = {}
    for segment in _UNESCAPED_COMMA_RE.split(text or ""):
        if not segment.strip():
            continue
        key, sep, value = segment.partition("=")
        key = key.strip().lower()
        if not key:
            continue
        result[key] = value.strip().replace(_ESCAPED_COMMA, ",") if sep else None
    return result


def format_params(params: Mapping[str, str | None]) -> str:
    """Inversa de `parse_params` para mappings bien formados."""

    parts: list[str] = []
    for key, value in params.items():
        if value is None:
            parts.append(key)
        else:
            escaped = value.replace(",", _ESCAPED_COMMA)
            parts.append(f"{key}={escaped}")
    return ",".join(parts)
