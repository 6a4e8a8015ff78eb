"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en el chat de consola y en `doctor`.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import EntityAttachment
from core.services.markup import ZERO_WIDTH_JOINER, ZERO_WIDTH_SPACE


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida.

    Por qué aquí:
    - Evita dependencias circulares (main <-> doctor).
    - Permite desactivar banner en modos no interactivos (`ask`).
    """

    title = Text("OCTANE CHATOPS", style="bold cyan")
    subtitle = Text("Defects • User stories • Features • Epics", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def _console_value(value: str) -> str:
    # Los marcadores de Slack llevan caracteres de ancho cero; en terminal sobran.
    return value.replace(ZERO_WIDTH_SPACE, "").replace(ZERO_WIDTH_JOINER, "")


def build_attachment_panel(attachment: EntityAttachment) -> Panel:
    """Panel equivalente a un attachment de Slack."""

    table = Table.grid(padding=(0, 2))
    table.add_column("Field", style="bold", no_wrap=True)
    table.add_column("Value", style="white")
    for field in attachment.fields:
        table.add_row(Text(field.title), Text(_console_value(field.value)))

    color = attachment.color or "cyan"
    return Panel(table, title=Text(attachment.title, style="bold"), border_style=color, title_align="left")


def build_checks_table(title: str) -> Table:
    table = Table(title=title)
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")
    return table
