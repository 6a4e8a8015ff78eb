"""Taxonomía de errores y resultados tipados.

Por qué resultados en vez de excepciones:
- El runner autenticado y la resolución de campos devuelven siempre un resultado
  clasificado; el dispatcher decide qué responder en el chat.
- La única excepción que cruza capas es `RemoteCallError`, el contrato que deben
  lanzar los gateways remotos (p.ej. el cliente REST de Octane).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FailureKind(str, Enum):
    """Clasificación de un fallo remoto."""

    UNAUTHORIZED = "unauthorized"
    OTHER = "other"


class OutcomeKind(str, Enum):
    """Resultado final de una ejecución autenticada."""

    SUCCESS = "success"
    OPERATION_FAILED = "operation_failed"
    AUTHENTICATION_FAILED = "authentication_failed"
    INTERNAL_FAULT = "internal_fault"
    UNAVAILABLE = "unavailable"


class FieldErrorKind(str, Enum):
    UNKNOWN_FIELD = "unknown_field"
    INVALID_ENUM_VALUE = "invalid_enum_value"
    PARENT_NOT_FOUND = "parent_not_found"


class RemoteCallError(Exception):
    """Fallo de una llamada remota, con el status HTTP si lo hubo."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    @property
    def kind(self) -> FailureKind:
        return FailureKind.UNAUTHORIZED if self.status == 401 else FailureKind.OTHER


@dataclass(frozen=True)
class RemoteFailure:
    kind: FailureKind
    message: str
    status: int | None = None

    @classmethod
    def from_error(cls, error: RemoteCallError) -> "RemoteFailure":
        return cls(kind=error.kind, message=error.message, status=error.status)


@dataclass(frozen=True)
class RemoteResult:
    """Salida de `RemoteOperation.invoke`: un valor o un fallo clasificado."""

    value: Any = None
    failure: RemoteFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass(frozen=True)
class RunOutcome:
    kind: OutcomeKind
    operation: str
    value: Any = None
    message: str | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


@dataclass(frozen=True)
class FieldError:
    """Error de resolución de un campo (se reporta directo al chat)."""

    kind: FieldErrorKind
    field: str
    value: str | None = None
    alternatives: list[str] = field(default_factory=list)

    def describe(self, help_hint: str) -> str:
        if self.kind is FieldErrorKind.INVALID_ENUM_VALUE:
            return (
                f"I can't do that because field {self.field} does not support the value {self.value}. "
                f"Try again using one of these values : {','.join(self.alternatives)}"
            )
        if self.kind is FieldErrorKind.PARENT_NOT_FOUND:
            return "I can't find that parent. Try again with a different parent."
        return f"I can't do that because field {self.field} does not exist. Try again. \n{help_hint}"
