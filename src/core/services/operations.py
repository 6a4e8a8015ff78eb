"""Operaciones remotas sobre el gateway.

`GatewayOperation` envuelve una corrutina que habla con el gateway y convierte
`RemoteCallError` en un `RemoteResult` clasificado (401 -> UNAUTHORIZED). Las
demás excepciones se dejan pasar: el runner las trata como fallo interno.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from core.domain.errors import RemoteCallError, RemoteFailure, RemoteResult
from core.interfaces.gateway import WorkItemGateway
from core.interfaces.remote import FailureCallback


@dataclass
class GatewayOperation:
    name: str
    call: Callable[[], Awaitable[Any]]
    on_failure: FailureCallback | None = None

    async def invoke(self) -> RemoteResult:
        try:
            value = await self.call()
        except RemoteCallError as exc:
            return RemoteResult(failure=RemoteFailure.from_error(exc))
        return RemoteResult(value=value)


class GatewayAuthenticator:
    def __init__(self, gateway: WorkItemGateway) -> None:
        self._gateway = gateway

    async def authenticate(self) -> RemoteFailure | None:
        try:
            await self._gateway.authenticate()
        except RemoteCallError as exc:
            return RemoteFailure.from_error(exc)
        return None
