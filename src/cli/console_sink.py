"""Sink de chat para la terminal (Rich)."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from cli.ui_components import build_attachment_panel
from core.domain.models import ChatMessage, EntityAttachment


class ConsoleSink:
    supports_attachments = True

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    async def reply(self, message: ChatMessage, text: str) -> None:
        self.console.print(f"[bold cyan]@{escape(message.user)}[/bold cyan]: {escape(text)}")

    async def send(self, message: ChatMessage, text: str) -> None:
        self.console.print(escape(text))

    async def send_attachment(self, message: ChatMessage, attachment: EntityAttachment) -> bool:
        self.console.print(build_attachment_panel(attachment))
        return True
