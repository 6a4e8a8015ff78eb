"""Contratos de operaciones remotas.

Por qué Protocol:
- El runner autenticado solo necesita saber *qué* es una operación remota
  (nombre, invocación, callback de fallo opcional) y cómo re-autenticar.
- Permite probar el runner con operaciones falsas sin tocar HTTP.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Protocol, runtime_checkable

from core.domain.errors import RemoteFailure, RemoteResult

FailureCallback = Callable[[str], Awaitable[None]]


@runtime_checkable
class RemoteOperation(Protocol):
    """Unidad de trabajo remota, creada por cada comando.

    Reglas de diseño:
    - `invoke` devuelve un `RemoteResult`; los fallos remotos esperados no se lanzan.
    - Cualquier excepción que escape de `invoke` es un fallo interno.
    """

    name: str
    on_failure: FailureCallback | None

    async def invoke(self) -> RemoteResult:
        ...


@runtime_checkable
class Authenticator(Protocol):
    async def authenticate(self) -> RemoteFailure | None:
        """Re-autentica contra el sistema remoto; `None` si fue bien."""

        ...
