"""Sink de chat que publica en un canal de Slack (implementa `ChatSink`)."""

from __future__ import annotations

import logging
import re

from adapters.slack_poster import SlackPoster
from core.domain.models import ChatMessage, EntityAttachment
from core.interfaces.chat import ChatSink

logger = logging.getLogger(__name__)

# IDs de usuario de Slack: U/W + mayúsculas y dígitos.
_SLACK_USER_ID = re.compile(r"^[UW][A-Z0-9]{6,}$")


def mention(user: str) -> str:
    """`<@U123ABC>` si es un ID de Slack; un nombre de consola se deja en texto plano."""

    return f"<@{user}>" if _SLACK_USER_ID.match(user) else user


class SlackSink:
    """Publica en Slack; opcionalmente replica cada respuesta en otro sink (eco local)."""

    supports_attachments = True

    def __init__(self, poster: SlackPoster, channel: str, echo: ChatSink | None = None) -> None:
        self._poster = poster
        self._channel = channel
        self._echo = echo

    def _channel_for(self, message: ChatMessage) -> str:
        return message.room or self._channel

    async def reply(self, message: ChatMessage, text: str) -> None:
        if self._echo is not None:
            await self._echo.reply(message, text)
        await self._poster.post_message(self._channel_for(message), text=f"{mention(message.user)}: {text}")

    async def send(self, message: ChatMessage, text: str) -> None:
        if self._echo is not None:
            await self._echo.send(message, text)
        await self._poster.post_message(self._channel_for(message), text=text)

    async def send_attachment(self, message: ChatMessage, attachment: EntityAttachment) -> bool:
        delivered = await self._poster.post_message(self._channel_for(message), attachments=[attachment])
        if not delivered:
            logger.warning("Attachment %r not delivered to %s", attachment.title, self._channel_for(message))
            return False
        if self._echo is not None:
            await self._echo.send_attachment(message, attachment)
        return True
