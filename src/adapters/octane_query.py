"""Builder mínimo del lenguaje de queries de la REST API de Octane.

    Query.field("subtype").equal("defect")        -> "subtype EQ ^defect^"
    Query.field("name").in_(["a", "b"])           -> "name IN ^a^,^b^"
    q1.and_(q2)                                   -> "<q1>;<q2>"

El valor del parámetro `query` va entre comillas dobles (`str(query)`).
"""

from __future__ import annotations

from typing import Iterable


def _literal(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    text = str(value).replace("\\", "\\\\").replace("^", "\\^")
    return f"^{text}^"


class Query:
    def __init__(self, expression: str) -> None:
        self.expression = expression

    @staticmethod
    def field(name: str) -> "FieldQuery":
        return FieldQuery(name)

    def and_(self, other: "Query") -> "Query":
        return Query(f"{self.expression};{other.expression}")

    def __str__(self) -> str:
        return f'"{self.expression}"'

    def __repr__(self) -> str:
        return f"Query({self.expression!r})"


class FieldQuery:
    def __init__(self, name: str) -> None:
        self.name = name

    def equal(self, value: object) -> Query:
        return Query(f"{self.name} EQ {_literal(value)}")

    def in_(self, values: Iterable[object]) -> Query:
        return Query(f"{self.name} IN {','.join(_literal(v) for v in values)}")
