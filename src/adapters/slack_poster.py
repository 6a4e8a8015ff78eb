"""Publicación de respuestas en Slack (`chat.postMessage`) con slack_sdk.

Por qué aquí:
- El bot solo necesita publicar en un canal; el resto de la Web API no se usa.
- Un fallo de Slack nunca tumba el comando: se registra y se devuelve False, y el
  dispatcher decide si manda el texto plano.

`WebClient` es síncrono: las llamadas se ejecutan en un hilo (`asyncio.to_thread`)
para no bloquear el event loop del chat.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError, SlackClientError

from core.config import AppSettings
from core.domain.models import EntityAttachment

logger = logging.getLogger(__name__)


class SlackPoster:
    def __init__(self, settings: AppSettings | None = None, *, client: WebClient | None = None) -> None:
        self._settings = settings or AppSettings()
        if client is None:
            if not self._settings.slack_token:
                raise ValueError("missing Slack token (OCTANE_CHATOPS_SLACK_TOKEN)")
            client = WebClient(
                token=self._settings.slack_token,
                base_url=self._settings.slack_api_url.rstrip("/") + "/",
                timeout=int(self._settings.http_timeout_seconds),
                user_agent_prefix=self._settings.user_agent,
            )
        self._client = client

    async def post_message(
        self,
        channel: str,
        *,
        text: str = "",
        attachments: list[EntityAttachment] | None = None,
    ) -> bool:
        payload: dict[str, Any] = {"channel": channel, "text": text}
        if attachments:
            payload["attachments"] = [a.to_slack() for a in attachments]

        try:
            await asyncio.to_thread(self._client.chat_postMessage, **payload)
        except SlackApiError as exc:
            logger.error("Slack rejected the message: %s", exc.response.get("error", "unknown_error"))
            return False
        except (SlackClientError, OSError) as exc:
            logger.error("Slack chat.postMessage failed: %s", exc)
            return False
        return True

    async def auth_test(self) -> dict[str, Any]:
        """`auth.test`: valida el token. Lanza `SlackApiError` si Slack lo rechaza."""

        response = await asyncio.to_thread(self._client.auth_test)
        return dict(response.data)
