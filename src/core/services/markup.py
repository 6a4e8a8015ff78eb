"""Traducción de memos de Octane (HTML reducido) a markup de chat.

Por qué sin parser HTML:
- Los memos de Octane son un subconjunto pequeño y plano de HTML (b, i, s, a, p,
  span, li, br). Basta con sustitución por tags en dos pasadas.

Algoritmo (el orden de las pasadas importa):
1. Se eliminan los saltos de línea que Octane mete como ruido (` ?\\n`).
2. Se resuelven los tags pareados `<tag attrs>inner</tag>` uno a uno hasta que no
   quede ninguno. El contenido interno puede contener otros tags, que se resuelven
   en iteraciones siguientes.
3. Se resuelven los tags sueltos restantes (`<br>`, `<p/>`, ...).
4. Se decodifican las entidades conocidas (`&nbsp;`, `&quot;`, los placeholders
   `&slack_lt;`/`&slack_gt;` de los enlaces...). Las desconocidas se dejan tal cual.

Cada iteración consume un tag, así que el proceso termina siempre.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Callable, Mapping

# grupos: texto antes, tag, atributos, texto interno, texto después
_PAIRED_TAG_RE = re.compile(r"(.*)<([^ ]+)\b([^>]*)>(.*?)</\2>(.*)", re.DOTALL | re.ASCII)
# grupos: texto antes, tag, atributos, texto después
_SINGLE_TAG_RE = re.compile(r"(.*)<([^ ]+)\b(.*)/?>(.*)", re.ASCII)
_WRAP_NOISE_RE = re.compile(r" ?\n")
_ENTITY_RE = re.compile(r"&([\w_-]+);")
_MARGIN_LEFT_RE = re.compile(r"margin-left:(\d+)px;")

ZERO_WIDTH_SPACE = "\u200b"
ZERO_WIDTH_JOINER = "\u200d"

DEFAULT_ENTITIES: dict[str, str] = {
    "amp": "&",
    "apos": "'",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "nbsp": "\xa0",
}

# Slack requiere `<`/`>` literales solo en su sintaxis de enlaces: el resto se
# deja escapado. Los enlaces se emiten con placeholders propios.
SLACK_ENTITIES: dict[str, str] = {
    "apos": "'",
    "slack_lt": "<",
    "slack_gt": ">",
    "quot": '"',
    "nbsp": "\xa0",
}


@dataclass(frozen=True)
class TagReplacement:
    """Fragmentos que sustituyen a un tag; `None` significa "quitar el delimitador"."""

    start: str | None = None
    end: str | None = None
    single: str | None = None


TagRule = Callable[[str, str, bool], "TagReplacement | None"]


def _strip_all(tag: str, attributes: str, paired: bool) -> TagReplacement | None:
    return None


def strip_wrap_noise(text: str) -> str:
    return _WRAP_NOISE_RE.sub("", text)


def replace_paired_tags(text: str, rule: TagRule) -> str:
    match = _PAIRED_TAG_RE.search(text)
    while match:
        before, tag, attributes, inner, after = match.groups()
        replacement = rule(tag, attributes, True) or TagReplacement()
        text = before + (replacement.start or "") + inner + (replacement.end or "") + after
        match = _PAIRED_TAG_RE.search(text)
    return text


def replace_single_tags(text: str, rule: TagRule) -> str:
    match = _SINGLE_TAG_RE.search(text)
    while match:
        before, tag, attributes, after = match.groups()
        replacement = rule(tag, attributes, False) or TagReplacement()
        # sin DOTALL el match cubre una sola línea: se conserva el resto del texto
        text = text[: match.start()] + before + (replacement.single or "") + after + text[match.end() :]
        match = _SINGLE_TAG_RE.search(text)
    return text


def decode_entities(text: str, entities: Mapping[str, str] | None = None) -> str:
    table = DEFAULT_ENTITIES if entities is None else entities

    def _decode(match: re.Match[str]) -> str:
        return table.get(match.group(1), match.group(0))

    return _ENTITY_RE.sub(_decode, text)


def translate(
    source: str,
    rule: TagRule | None = None,
    entities: Mapping[str, str] | None = None,
) -> str:
    """Convierte `source` aplicando `rule` a cada tag (por defecto: quitarlo)."""

    rule = rule or _strip_all
    text = strip_wrap_noise(source or "")
    text = replace_paired_tags(text, rule)
    text = replace_single_tags(text, rule)
    return decode_entities(text, entities)


def get_attribute_value(name: str, attributes: str) -> str | None:
    """Valor entrecomillado de `name="..."` en el texto de atributos."""

    match = re.search(re.escape(name) + r' ?= ?"([^"]*)"', attributes or "")
    if match and match.group(1):
        return match.group(1)
    return None


def _emphasis(marker: str) -> TagReplacement:
    # los zero-width evitan que Slack pegue el marcador a caracteres vecinos
    return TagReplacement(
        start=ZERO_WIDTH_SPACE + marker + ZERO_WIDTH_JOINER,
        end=ZERO_WIDTH_JOINER + marker + ZERO_WIDTH_SPACE,
    )


SLACK_BOLD = _emphasis("*")
SLACK_ITALIC = _emphasis("_")
SLACK_STRIKE = _emphasis("~")


class SlackMarkupRule:
    """Regla de sustitución Octane -> mrkdwn de Slack."""

    def __init__(self, indent_unit_px: int = 40) -> None:
        self._indent_unit_px = indent_unit_px

    def __call__(self, tag: str, attributes: str, paired: bool) -> TagReplacement | None:
        tag = tag.lower()
        if not paired:
            if tag in ("br", "p"):
                return TagReplacement(single="\n")
            return None

        if tag == "b":
            return SLACK_BOLD
        if tag == "i":
            return SLACK_ITALIC
        if tag == "s":
            return SLACK_STRIKE
        if tag == "a":
            href = get_attribute_value("href", attributes)
            if href:
                return TagReplacement(start=f"&slack_lt;{href}|", end="&slack_gt;")
            return None
        if tag == "p":
            return TagReplacement(start="\n" + "\t" * self._indent_level(attributes))
        # Slack no tiene listas: se imitan con saltos de línea y viñetas
        if tag == "li":
            return TagReplacement(start="\n\t• ")
        if tag == "span":
            style = get_attribute_value("style", attributes)
            if style == "font-weight:bold;":
                return SLACK_BOLD
            if style == "font-style:italic;":
                return SLACK_ITALIC
        return None

    def _indent_level(self, attributes: str) -> int:
        style = get_attribute_value("style", attributes)
        if not style:
            return 0
        margin = _MARGIN_LEFT_RE.search(style)
        if not margin:
            return 0
        return math.ceil(int(margin.group(1)) / self._indent_unit_px)


def to_slack_markup(memo: str, *, indent_unit_px: int = 40) -> str:
    return translate(memo, SlackMarkupRule(indent_unit_px), SLACK_ENTITIES)


def to_plain_text(memo: str) -> str:
    return translate(memo)
