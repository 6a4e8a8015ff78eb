"""Ejecución autenticada de operaciones remotas.

Por qué un runner:
- Los tokens de Octane caducan. Ante un 401 el runner re-autentica una vez y
  repite la operación una vez; nunca más, para no entrar en bucles de reintentos.
- Mantiene el estado visible por el comando `status` (global y por usuario).

La lógica es una máquina de estados finita con tabla de transiciones explícita:

    FRESH --ok--> DONE
    FRESH --401--> AUTHENTICATING --auth ok--> RETRIED --ok--> DONE
    cualquier fallo terminal --> FAILED
"""

from __future__ import annotations

import logging
from enum import Enum

from core.domain.errors import FailureKind, OutcomeKind, RemoteFailure, RemoteResult, RunOutcome
from core.interfaces.remote import Authenticator, RemoteOperation

logger = logging.getLogger(__name__)

IDLE = "idle"
AUTHENTICATING = "authenticating"


def running(operation: str) -> str:
    return f"running:{operation}"


def finished(operation: str) -> str:
    return f"finished:{operation}"


def errored(message: str) -> str:
    return f"error:{message}"


class StatusBoard:
    """Estado global y por usuario.

    El global refleja solo la última ejecución actualizada; el autoritativo por
    comando es el del usuario.
    """

    def __init__(self) -> None:
        self.global_status = IDLE
        self._users: dict[str, str] = {}

    def update(self, status: str, user: str | None = None) -> None:
        logger.debug("Updating global status: %s", status)
        self.global_status = status
        if user:
            logger.debug("Updating user [%s] status: %s", user, status)
            self._users[user] = status

    def user_status(self, user: str) -> str:
        return self._users.get(user, IDLE)


class RunState(str, Enum):
    FRESH = "fresh"
    AUTHENTICATING = "authenticating"
    RETRIED = "retried"
    DONE = "done"
    FAILED = "failed"


class RunEvent(str, Enum):
    SUCCEEDED = "succeeded"
    UNAUTHORIZED = "unauthorized"
    FAILED = "failed"
    AUTHENTICATED = "authenticated"
    AUTHENTICATION_FAILED = "authentication_failed"
    FAULT = "fault"


_TRANSITIONS: dict[tuple[RunState, RunEvent], RunState] = {
    (RunState.FRESH, RunEvent.SUCCEEDED): RunState.DONE,
    (RunState.FRESH, RunEvent.UNAUTHORIZED): RunState.AUTHENTICATING,
    (RunState.FRESH, RunEvent.FAILED): RunState.FAILED,
    (RunState.FRESH, RunEvent.FAULT): RunState.FAILED,
    (RunState.AUTHENTICATING, RunEvent.AUTHENTICATED): RunState.RETRIED,
    (RunState.AUTHENTICATING, RunEvent.AUTHENTICATION_FAILED): RunState.FAILED,
    (RunState.RETRIED, RunEvent.SUCCEEDED): RunState.DONE,
    (RunState.RETRIED, RunEvent.UNAUTHORIZED): RunState.FAILED,
    (RunState.RETRIED, RunEvent.FAILED): RunState.FAILED,
    (RunState.RETRIED, RunEvent.FAULT): RunState.FAILED,
}


def next_state(state: RunState, event: RunEvent) -> RunState:
    return _TRANSITIONS[(state, event)]


class AuthenticatedRunner:
    """Ejecuta una `RemoteOperation` con como mucho un ciclo de re-autenticación.

    Nunca lanza: siempre devuelve un `RunOutcome` clasificado.
    """

    def __init__(
        self,
        authenticator: Authenticator | None,
        status: StatusBoard | None = None,
        *,
        available: bool = True,
    ) -> None:
        self._authenticator = authenticator
        self.status = status or StatusBoard()
        self.available = available and authenticator is not None

    async def run(
        self,
        operation: RemoteOperation,
        *,
        user: str | None = None,
        retry_unauthorized: bool = True,
    ) -> RunOutcome:
        name = operation.name
        if not self.available:
            logger.error(
                "The Octane connection was not created; operation %s requires it and will not run", name
            )
            return RunOutcome(kind=OutcomeKind.UNAVAILABLE, operation=name, message="Octane connection unavailable")

        state = RunState.FRESH
        attempts = 0
        result = RemoteResult()
        failure: RemoteFailure | None = None
        failed_kind = OutcomeKind.OPERATION_FAILED

        while state not in (RunState.DONE, RunState.FAILED):
            if state is RunState.AUTHENTICATING:
                self.status.update(AUTHENTICATING, user)
                failure = await self._authenticate()
                if failure is None:
                    event = RunEvent.AUTHENTICATED
                else:
                    event = RunEvent.AUTHENTICATION_FAILED
                    failed_kind = OutcomeKind.AUTHENTICATION_FAILED
            else:
                self.status.update(running(name), user)
                attempts += 1
                try:
                    result = await operation.invoke()
                except Exception as exc:
                    failure = RemoteFailure(kind=FailureKind.OTHER, message=str(exc))
                    failed_kind = OutcomeKind.INTERNAL_FAULT
                    event = RunEvent.FAULT
                else:
                    failure = result.failure
                    event = self._classify(result, retry_unauthorized)
            state = next_state(state, event)

        if state is RunState.DONE:
            self.status.update(finished(name), user)
            return RunOutcome(kind=OutcomeKind.SUCCESS, operation=name, value=result.value, attempts=attempts)

        message = failure.message if failure else "unknown error"
        logger.debug("Error - %s", message)
        self.status.update(errored(message), user)
        # los fallos internos solo quedan en el estado; el dispatcher decide qué responder
        if operation.on_failure is not None and failed_kind is not OutcomeKind.INTERNAL_FAULT:
            try:
                await operation.on_failure(message)
            except Exception:
                logger.exception("Failure callback of %s raised", name)
        return RunOutcome(kind=failed_kind, operation=name, message=message, attempts=attempts)

    @staticmethod
    def _classify(result: RemoteResult, retry_unauthorized: bool) -> RunEvent:
        if result.ok:
            return RunEvent.SUCCEEDED
        if result.failure.kind is FailureKind.UNAUTHORIZED and retry_unauthorized:
            return RunEvent.UNAUTHORIZED
        return RunEvent.FAILED

    async def _authenticate(self) -> RemoteFailure | None:
        try:
            return await self._authenticator.authenticate()
        except Exception as exc:
            logger.debug("Authentication error - %s", exc)
            return RemoteFailure(kind=FailureKind.OTHER, message=str(exc))
