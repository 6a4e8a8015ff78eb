"""Inicialización del bot: catálogo y formularios de respuesta.

Es best-effort: se lanza en segundo plano al abrir la sesión de chat. Mientras
`Catalog.initialized` sea False, los comandos que dependen del catálogo responden
con el mensaje fijo de indisponibilidad.
"""

from __future__ import annotations

import asyncio
import logging

from core.domain.errors import RunOutcome
from core.domain.models import ListNode, Phase
from core.domain.subtypes import Subtype
from core.interfaces.gateway import WorkItemGateway
from core.services.catalog import Catalog
from core.services.operations import GatewayOperation
from core.services.response_forms import ResponseFormRegistry
from core.services.runner import AuthenticatedRunner

logger = logging.getLogger(__name__)


async def initialize_catalog(runner: AuthenticatedRunner, gateway: WorkItemGateway, catalog: Catalog) -> RunOutcome:
    async def _load() -> None:
        list_nodes = [ListNode.model_validate(item) for item in await gateway.list_list_nodes()]
        root = await gateway.root_work_item()
        phases = [Phase.model_validate(item) for item in await gateway.list_phases()]
        catalog.load(list_nodes=list_nodes, phases=phases, root_work_item=root)

    outcome = await runner.run(GatewayOperation("initialize_list_nodes", _load))
    if outcome.ok:
        logger.debug("Bot initialized List Nodes!")
    else:
        logger.error("Bot could not initialize the catalog: %s", outcome.message)
    return outcome


async def initialize_response_forms(
    runner: AuthenticatedRunner,
    gateway: WorkItemGateway,
    forms: ResponseFormRegistry,
) -> RunOutcome:
    async def _load() -> list[bool]:
        return list(await asyncio.gather(*(forms.load_default(subtype, gateway) for subtype in Subtype)))

    outcome = await runner.run(GatewayOperation("initialize_response_forms", _load))
    if outcome.ok:
        logger.debug("Bot initialized Response Forms!")
    else:
        logger.error("Bot could not initialize the Response Forms: %s", outcome.message)
    return outcome
