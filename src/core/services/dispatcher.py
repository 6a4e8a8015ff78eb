"""Dispatcher de comandos del chat.

Reconoce la gramática de comandos (case-insensitive), valida argumentos, resuelve
campos y ejecuta las llamadas remotas a través del runner autenticado. Todas las
ramas terminan en una respuesta al chat; ninguna excepción escapa de `dispatch`.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Awaitable, Callable

from core.config import AppSettings
from core.domain.errors import FieldError, FieldErrorKind, OutcomeKind, RunOutcome
from core.domain.models import ChatMessage
from core.domain.subtypes import FieldKind, Subtype
from core.interfaces.chat import ChatSink
from core.interfaces.gateway import WorkItemGateway
from core.interfaces.remote import FailureCallback
from core.services.catalog import Catalog
from core.services.entity_view import build_attachment, build_fallback_text
from core.services.field_resolver import FieldResolver, ResolvedField
from core.services.operations import GatewayOperation
from core.services.params import parse_params
from core.services.response_forms import ResponseFormRegistry
from core.services.runner import AuthenticatedRunner

logger = logging.getLogger(__name__)

INIT_FAILURE_MESSAGE = "Bot initialization failed!"

_TAG_RE = re.compile(r"<([^>]+)>")

Handler = Callable[[ChatMessage, ChatSink, "re.Match[str]"], Awaitable[None]]

HELP_LEGEND = (
    " All the commands are case insensitive and must be addressed to the bot\n"
    "<> - Required parameter\n"
    '"" - Use the exact string as input\n'
    '"option1|option 2|longer option 3" - Use the strings "option1", "option 2" or "longer option 3" as input\n'
    "[] - Optional parameter\n"
    "<parameter>[,...] - The previous parameter can be given multiple times. ex: parameter1,parameter2,parameter3\n"
)

HELP_COMMANDS = (
    "{p} get <\"{e}\"> <id> - List details about an entity.",
    "{p} reset <\"{e}\"> display - The get command for the given entity will display all the fields "
    "in the octane edit form of that entity",
    "{p} display [\"full|f\"] <\"{e}\"> <fieldName>[,...] - The get command for the given entity will also "
    "display the given fields. If the \"full\" flag is given, the fields will be displayed at full width.",
    "{p} <\"-|!|do not|don't\"> display [\"label|labels|l\"] <\"{e}\"> <fieldName>[,...] - The get command for "
    "the given entity will no longer display the given fields. If the \"label\" flag is given, the fieldNames "
    "will be interpreted as fieldLabels.",
    "{p} search <\"{e}\"> <text> - Search for an entity by name, description or ID. "
    "Only the first {limit} results will be displayed",
    "{p} update <\"{e}\"> <id> <fieldName>=<fieldValue> - Update the fields of an entity.\n"
    "\tOnly the name, description, priority, severity or feature can be updated for the defect entities\n"
    "\tOnly the name, description or feature can be updated for the userstory entity\n"
    "\tOnly the name, description, priority or epic can be updated for the feature entity\n"
    "\tOnly the name or description can be updated for the epic entity",
    "{p} create defect name=<name>,severity=<severity>[,feature=<featureId>] - Create a defect.",
    "{p} create userstory name=<name>[,feature=<featureId>] - Create a user story.",
    "{p} create feature name=<name>,epic=<epicId> - Create a feature.",
    "{p} create epic name=<name> - Create an epic.",
    "{p} status - Show your status and the global status of the bot.",
)


def _wire_value(field: ResolvedField) -> Any:
    if field.kind is FieldKind.LIST_NODE:
        return field.value.as_reference()
    if field.kind is FieldKind.PARENT:
        return {"type": field.value.get("type") or "work_item", "id": field.value["id"]}
    return field.value


class CommandDispatcher:
    def __init__(
        self,
        *,
        gateway: WorkItemGateway | None,
        runner: AuthenticatedRunner,
        catalog: Catalog,
        forms: ResponseFormRegistry,
        resolver: FieldResolver | None = None,
        settings: AppSettings | None = None,
    ) -> None:
        self._gateway = gateway
        self._runner = runner
        self._catalog = catalog
        self._forms = forms
        self._resolver = resolver or FieldResolver(catalog)
        self._settings = settings or AppSettings()
        self._prefix_re = re.compile(rf"^@?{re.escape(self._settings.command_prefix)}(?:\s+|$)", re.IGNORECASE)

        flags = re.IGNORECASE | re.DOTALL
        self._routes: list[tuple[re.Pattern[str], Handler]] = [
            (re.compile(r"^reset\s+(\S+)\s+display\s*$", flags), self._reset_display),
            (
                re.compile(r"^(?:-|!|do not|don[' `’]?t)\s*display\s+(?:(label|labels|l)\s+)?(\S+)\s+(.+)$", flags),
                self._hide_fields,
            ),
            (
                re.compile(r"^(?:\+|do|add(?:\s+to)?)?\s*display\s+(?:(f|full)\s+)?(\S+)\s+(.+)$", flags),
                self._show_fields,
            ),
            (re.compile(r"^get\s+(\S+)(\s+[0-9]+)?", flags), self._get),
            (re.compile(r"^search\s+(\S+)\s+(.+)$", flags), self._search),
            (re.compile(r"^update\s+(\S+)(\s+[0-9]+)?(.*)$", flags), self._update),
            (re.compile(r"^create\s+(\S+)\s+(.+)$", flags), self._create),
            (re.compile(r"^status\b", flags), self._status),
            (re.compile(r"^help\b", flags), self._help),
        ]

    @property
    def help_hint(self) -> str:
        return f"Type '{self._settings.command_prefix} help' to review the syntax of supported commands."

    def help_text(self) -> str:
        entities = "|".join(Subtype.tokens())
        commands = [
            line.format(p=self._settings.command_prefix, e=entities, limit=self._settings.search_limit)
            for line in HELP_COMMANDS
        ]
        return HELP_LEGEND + "".join(f"\n\n{line}" for line in commands)

    async def dispatch(self, message: ChatMessage, sink: ChatSink) -> bool:
        """Procesa un mensaje; devuelve False si no era un comando reconocido."""

        text = message.text.strip()
        prefix = self._prefix_re.match(text)
        command = text[prefix.end() :] if prefix else text

        for pattern, handler in self._routes:
            match = pattern.match(command)
            if match:
                logger.debug("Handling %s from [%s]", handler.__name__, message.user)
                await handler(message, sink, match)
                return True

        await sink.reply(
            message,
            f"Sorry, I didn't understand your message: {message.text}. {self.help_hint}",
        )
        return False

    # helpers

    async def _subtype(self, token: str, message: ChatMessage, sink: ChatSink) -> Subtype | None:
        subtype = Subtype.from_token(token)
        if subtype is None:
            await sink.reply(
                message,
                f"I don't know the entity type {token}. Use one of: {', '.join(Subtype.tokens())}.",
            )
        return subtype

    async def _require_initialized(self, message: ChatMessage, sink: ChatSink) -> bool:
        if not self._catalog.initialized:
            await sink.reply(message, INIT_FAILURE_MESSAGE)
            return False
        return True

    async def _require_id(self, raw: str | None, message: ChatMessage, sink: ChatSink) -> str | None:
        entity_id = (raw or "").strip()
        if not entity_id:
            await sink.reply(
                message,
                f"I can't do that because you didn't mention entity ID. Try again. \n{self.help_hint}",
            )
            return None
        return entity_id

    def _reply_on_failure(self, message: ChatMessage, sink: ChatSink) -> FailureCallback:
        async def _reply(error: str) -> None:
            await sink.reply(message, f"Sorry, I can't do that because: {error}")

        return _reply

    async def _run(
        self,
        name: str,
        call: Callable[[], Awaitable[Any]],
        message: ChatMessage,
        sink: ChatSink,
    ) -> RunOutcome:
        operation = GatewayOperation(name, call, on_failure=self._reply_on_failure(message, sink))
        outcome = await self._runner.run(operation, user=message.user)
        if outcome.kind is OutcomeKind.UNAVAILABLE:
            await sink.reply(message, INIT_FAILURE_MESSAGE)
        elif outcome.kind is OutcomeKind.INTERNAL_FAULT:
            await sink.reply(message, f"Sorry, I can't do that because: {outcome.message}")
        return outcome

    # handlers

    async def _get(self, message: ChatMessage, sink: ChatSink, match: re.Match[str]) -> None:
        subtype = await self._subtype(match.group(1), message, sink)
        if subtype is None:
            return
        entity_id = await self._require_id(match.group(2), message, sink)
        if entity_id is None:
            return

        form = self._forms.get(subtype)
        if form is None or form.is_empty():
            await sink.reply(
                message,
                "I don't know which fields to bring. Please add at least one field in the response form "
                f"of the {subtype.resource}.",
            )
            return
        form = form.model_copy(deep=True)
        fields = list(dict.fromkeys([*form.field_names, "id", "name", "phase"]))

        outcome = await self._run(
            "get_entity_by_id",
            lambda: self._gateway.get_entity(subtype.resource, entity_id, fields),
            message,
            sink,
        )
        if not outcome.ok:
            return
        entity = outcome.value
        if entity is None:
            await sink.reply(
                message,
                f"I can't find the entity {subtype.value} {entity_id}. Try again with a different entity.",
            )
            return

        if sink.supports_attachments:
            attachment = build_attachment(entity, form, indent_unit_px=self._settings.indent_unit_px)
            if await sink.send_attachment(message, attachment):
                return
            logger.debug("Rich reply failed; sending the plain text fallback")
        await sink.send(message, build_fallback_text(entity, form))

    async def _search(self, message: ChatMessage, sink: ChatSink, match: re.Match[str]) -> None:
        subtype = await self._subtype(match.group(1), message, sink)
        if subtype is None or not await self._require_initialized(message, sink):
            return
        text = match.group(2).strip()
        limit = self._settings.search_limit

        outcome = await self._run(
            "search_entity",
            lambda: self._gateway.search_work_items(subtype.entity_name, text, limit),
            message,
            sink,
        )
        if not outcome.ok:
            return
        page = outcome.value
        if not page.items:
            await sink.reply(message, f"No {subtype.value} found")
            return

        reply = "\n"
        for item in page.items:
            reply += f"ID: {item.get('id')} | Summary: {self._summary(item)}\n"
        if page.total_count and page.total_count > len(page.items):
            reply += f"Only {len(page.items)} out of {page.total_count} results are displayed."
        await sink.reply(message, reply)

    @staticmethod
    def _summary(item: dict[str, Any]) -> str:
        highlighted = item.get("global_text_search_result")
        if isinstance(highlighted, dict) and highlighted.get("name"):
            return _TAG_RE.sub("", str(highlighted["name"]))
        return str(item.get("name") or "")

    async def _update(self, message: ChatMessage, sink: ChatSink, match: re.Match[str]) -> None:
        subtype = await self._subtype(match.group(1), message, sink)
        if subtype is None:
            return
        entity_id = await self._require_id(match.group(2), message, sink)
        if entity_id is None or not await self._require_initialized(message, sink):
            return

        field_name, sep, raw_value = (match.group(3) or "").partition("=")
        field_name = field_name.strip().lower()
        if not field_name:
            await sink.reply(
                message,
                f"I can't do that because you didn't specify any field. Try again. \n{self.help_hint}",
            )
            return
        resolved = self._resolver.resolve(subtype, field_name, raw_value if sep else None)
        if isinstance(resolved, FieldError):
            await sink.reply(message, resolved.describe(self.help_hint))
            return
        if not sep:
            await sink.reply(message, f"missing value for field : {field_name}")
            return

        async def _update_entity() -> Any:
            field = resolved
            if field.needs_parent_lookup:
                field = await self._resolver.resolve_parent(field, self._gateway.find_work_item)
                if isinstance(field, FieldError):
                    return field
                changes = {"parent": _wire_value(field)}
            else:
                changes = {field.name: _wire_value(field)}
            return await self._gateway.update_entity(subtype.resource, entity_id, changes)

        outcome = await self._run("update_entity", _update_entity, message, sink)
        if not outcome.ok:
            return
        if isinstance(outcome.value, FieldError):
            await sink.reply(message, outcome.value.describe(self.help_hint))
            return
        updated = outcome.value or {}
        await sink.reply(message, f"{subtype.value} {updated.get('id', entity_id)} updated successfully")

    async def _create(self, message: ChatMessage, sink: ChatSink, match: re.Match[str]) -> None:
        subtype = await self._subtype(match.group(1), message, sink)
        if subtype is None or not await self._require_initialized(message, sink):
            return

        entity: dict[str, Any] = {}
        phase = self._catalog.phase(subtype.new_phase)
        if phase is not None:
            entity["phase"] = phase.as_reference()
        root = self._catalog.root_work_item
        if root:
            entity["parent"] = {"type": root.get("type") or "work_item", "id": root["id"]}

        parent_field: ResolvedField | None = None
        for key, value in parse_params(match.group(2)).items():
            if self._resolver.field_kind(subtype, key) is None:
                error = FieldError(kind=FieldErrorKind.UNKNOWN_FIELD, field=key, value=value)
                await sink.reply(message, error.describe(self.help_hint))
                return
            if not value:
                await sink.reply(message, f"missing value for field : {key}")
                return
            resolved = self._resolver.resolve(subtype, key, value)
            if isinstance(resolved, FieldError):
                await sink.reply(message, resolved.describe(self.help_hint))
                return
            if resolved.kind is FieldKind.PARENT:
                parent_field = resolved
            else:
                entity[resolved.name] = _wire_value(resolved)

        if parent_field is None and subtype is Subtype.FEATURE:
            await sink.reply(
                message,
                "I can't create a feature under the root. Please specify an epic as the parent for the feature.",
            )
            return

        async def _create_entity() -> Any:
            payload = dict(entity)
            if parent_field is not None:
                parent = await self._resolver.resolve_parent(parent_field, self._gateway.find_work_item)
                if isinstance(parent, FieldError):
                    return parent
                payload["parent"] = _wire_value(parent)
            return await self._gateway.create_entity(subtype.resource, payload)

        outcome = await self._run("create_entity", _create_entity, message, sink)
        if not outcome.ok:
            return
        if isinstance(outcome.value, FieldError):
            await sink.reply(message, outcome.value.describe(self.help_hint))
            return
        created = outcome.value or {}
        await sink.reply(message, f"{subtype.value} created successfully. ID: {created.get('id')}")

    async def _show_fields(self, message: ChatMessage, sink: ChatSink, match: re.Match[str]) -> None:
        subtype = await self._subtype(match.group(2), message, sink)
        if subtype is None:
            return
        size = "large" if match.group(1) else "medium"
        requested = [name.strip() for name in match.group(3).split(",") if name.strip()]

        outcome = await self._run(
            "add_field_metadata_to_form",
            lambda: self._gateway.field_metadata(subtype.entity_name, requested),
            message,
            sink,
        )
        if not outcome.ok:
            return
        report = self._forms.add_fields(subtype, requested, outcome.value or [], size=size)

        lines: list[str] = []
        if report.added:
            lines.append(
                f"Successfully added the fields with the names {','.join(report.added)} "
                f"in the get {subtype.entity_name} form."
            )
        if report.skipped:
            lines.append(f"The fields {','.join(report.skipped)} are already present in the {subtype.value} form.")
        if report.unknown:
            lines.append(f"The fields {','.join(report.unknown)} are not {subtype.value} fields.")
        await sink.send(message, "\n".join(lines))

    async def _hide_fields(self, message: ChatMessage, sink: ChatSink, match: re.Match[str]) -> None:
        subtype = await self._subtype(match.group(2), message, sink)
        if subtype is None:
            return
        targets = [name.strip() for name in match.group(3).split(",") if name.strip()]
        report = self._forms.remove_fields(subtype, targets, by_label=bool(match.group(1)))

        lines: list[str] = []
        if report.removed:
            lines.append(
                f"Successfully removed the fields with the names {','.join(report.removed)} "
                f"from the get {subtype.entity_name} form."
            )
        if report.not_found:
            lines.append(
                f"The fields {','.join(report.not_found)} were not found in the get {subtype.value} form."
            )
        await sink.send(message, "\n".join(lines))

    async def _reset_display(self, message: ChatMessage, sink: ChatSink, match: re.Match[str]) -> None:
        subtype = await self._subtype(match.group(1), message, sink)
        if subtype is None:
            return
        outcome = await self._run(
            "reset_response_form",
            lambda: self._forms.load_default(subtype, self._gateway),
            message,
            sink,
        )
        if not outcome.ok:
            return
        if not outcome.value:
            await sink.reply(message, f"I couldn't find the octane edit form of the {subtype.value}.")
            return
        await sink.send(
            message,
            f"The get {subtype.value} form will now display the fields that are in the octane edit form "
            f"of the {subtype.value}",
        )

    async def _status(self, message: ChatMessage, sink: ChatSink, match: re.Match[str]) -> None:
        status = self._runner.status
        await sink.reply(message, f"User [{message.user}] status: {status.user_status(message.user)}")
        await sink.reply(message, f"Global status: {status.global_status}")

    async def _help(self, message: ChatMessage, sink: ChatSink, match: re.Match[str]) -> None:
        await sink.reply(message, self.help_text())
