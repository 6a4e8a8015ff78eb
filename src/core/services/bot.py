"""Ensamblado del bot.

Por qué aquí:
- Agrupa el estado de proceso (status, catálogo, formularios) con un ciclo de vida
  explícito: se crea al arrancar y vive lo que dure la sesión de chat.
- La CLI (u otro entry-point) solo aporta el gateway concreto y el sink.
"""

from __future__ import annotations

import asyncio
import logging

from core.config import AppSettings
from core.domain.models import ChatMessage
from core.interfaces.chat import ChatSink
from core.interfaces.gateway import WorkItemGateway
from core.services.bootstrap import initialize_catalog, initialize_response_forms
from core.services.catalog import Catalog
from core.services.dispatcher import CommandDispatcher
from core.services.field_resolver import FieldResolver
from core.services.operations import GatewayAuthenticator
from core.services.response_forms import ResponseFormRegistry
from core.services.runner import AuthenticatedRunner, StatusBoard, errored

logger = logging.getLogger(__name__)


class ChatOpsBot:
    def __init__(self, gateway: WorkItemGateway | None, settings: AppSettings | None = None) -> None:
        self.settings = settings or AppSettings()
        self.gateway = gateway
        self.status = StatusBoard()
        self.catalog = Catalog()
        self.forms = ResponseFormRegistry()
        self.runner = AuthenticatedRunner(
            GatewayAuthenticator(gateway) if gateway is not None else None,
            self.status,
        )
        self.resolver = FieldResolver(self.catalog)
        self.dispatcher = CommandDispatcher(
            gateway=gateway,
            runner=self.runner,
            catalog=self.catalog,
            forms=self.forms,
            resolver=self.resolver,
            settings=self.settings,
        )
        if gateway is None:
            self.status.update(errored("Failed to initialize"))

    async def initialize(self) -> bool:
        """Carga catálogo y formularios; True si el catálogo quedó listo."""

        if self.gateway is None:
            logger.error("No Octane connection: the bot will answer every command as unavailable")
            return False
        catalog_outcome, _ = await asyncio.gather(
            initialize_catalog(self.runner, self.gateway, self.catalog),
            initialize_response_forms(self.runner, self.gateway, self.forms),
        )
        return catalog_outcome.ok

    async def handle(self, message: ChatMessage, sink: ChatSink) -> bool:
        return await self.dispatcher.dispatch(message, sink)
