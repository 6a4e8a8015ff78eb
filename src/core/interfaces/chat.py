"""Contrato de salida hacia el chat."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import ChatMessage, EntityAttachment


@runtime_checkable
class ChatSink(Protocol):
    """Destino de las respuestas de un comando.

    - `reply` menciona al usuario; `send` escribe en la sala.
    - `send_attachment` devuelve False si no pudo entregar el formato rico
      (el dispatcher entonces manda el texto plano).
    """

    supports_attachments: bool

    async def reply(self, message: ChatMessage, text: str) -> None:
        ...

    async def send(self, message: ChatMessage, text: str) -> None:
        ...

    async def send_attachment(self, message: ChatMessage, attachment: EntityAttachment) -> bool:
        ...
