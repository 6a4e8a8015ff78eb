"""CLI principal (Typer).

Por qué Typer + Rich:
- Typer da una CLI tipada con ayuda autogenerada.
- Rich pinta respuestas, attachments y diagnósticos sin acoplar el Core a la terminal.

Comandos:
- `chat`: consola interactiva; cada línea se despacha como un mensaje de chat.
- `ask`: un único comando (scripts / pipelines).
- `setup`: guarda conexión y credenciales en el .env del usuario.
- `doctor`: diagnósticos.
"""

from __future__ import annotations

import asyncio
import contextlib
import getpass
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from adapters.octane_client import OctaneClient, OctaneConfigError
from adapters.slack_poster import SlackPoster
from adapters.slack_sink import SlackSink
from cli import doctor
from cli.console_sink import ConsoleSink
from cli.ui_components import print_banner
from core.config import AppSettings, write_user_env_vars
from core.domain.models import ChatMessage
from core.interfaces.chat import ChatSink
from core.services.bot import ChatOpsBot

logger = logging.getLogger(__name__)

app = typer.Typer(no_args_is_help=True, help="Chat commands over ALM Octane work items.")
app.add_typer(doctor.app, name="doctor")

_console = Console()

_EXIT_WORDS = {"exit", "quit"}


def _default_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "chatops"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # httpx loguea cada request a INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _build_client(settings: AppSettings) -> OctaneClient | None:
    try:
        return OctaneClient(settings)
    except OctaneConfigError as exc:
        logger.error("Octane connection not configured: %s", exc)
        return None


def _build_sink(settings: AppSettings, slack_channel: str | None) -> ChatSink:
    console_sink = ConsoleSink(_console)
    if not slack_channel:
        return console_sink
    if not settings.slack_token:
        logger.error("--slack-channel given but OCTANE_CHATOPS_SLACK_TOKEN is not set; replying only here")
        return console_sink
    return SlackSink(SlackPoster(settings), slack_channel, echo=console_sink)


async def _chat_session(settings: AppSettings, user: str, slack_channel: str | None) -> None:
    client = _build_client(settings)
    sink = _build_sink(settings, slack_channel)
    bot = ChatOpsBot(client, settings)

    init_task = asyncio.create_task(bot.initialize())
    try:
        while True:
            try:
                line = await asyncio.to_thread(_console.input, f"[bold]{user}[/bold]> ")
            except (EOFError, KeyboardInterrupt):
                break
            text = line.strip()
            if not text:
                continue
            if text.lower() in _EXIT_WORDS:
                break
            await bot.handle(ChatMessage(user=user, text=text, room=slack_channel), sink)
    finally:
        if not init_task.done():
            init_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await init_task
        if client is not None:
            await client.aclose()


async def _ask_once(settings: AppSettings, user: str, text: str, slack_channel: str | None) -> bool:
    client = _build_client(settings)
    sink = _build_sink(settings, slack_channel)
    bot = ChatOpsBot(client, settings)
    try:
        await bot.initialize()
        return await bot.handle(ChatMessage(user=user, text=text, room=slack_channel), sink)
    finally:
        if client is not None:
            await client.aclose()


@app.command()
def chat(
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Usuario con el que se firman los mensajes."),
    slack_channel: Optional[str] = typer.Option(
        None,
        "--slack-channel",
        help="Canal de Slack al que también se envían las respuestas.",
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ERROR."),
    no_banner: bool = typer.Option(False, "--no-banner", help="No imprimir el banner."),
) -> None:
    """Consola interactiva: escribe comandos como en el chat (`exit` para salir)."""

    settings = AppSettings()
    configure_logging(log_level or settings.log_level)
    user = user or _default_user()
    if not no_banner:
        print_banner(_console)
        _console.print(f"[dim]Type '{settings.command_prefix} help' for the list of commands.[/dim]")
    asyncio.run(_chat_session(settings, user, slack_channel))


@app.command()
def ask(
    text: str = typer.Argument(..., help="Comando completo, p.ej. \"get defect 1001\"."),
    user: Optional[str] = typer.Option(None, "--user", "-u"),
    slack_channel: Optional[str] = typer.Option(None, "--slack-channel"),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
) -> None:
    """Ejecuta un único comando y sale (código 1 si no se reconoció)."""

    settings = AppSettings()
    configure_logging(log_level or settings.log_level)
    user = user or _default_user()
    recognized = asyncio.run(_ask_once(settings, user, text, slack_channel))
    if not recognized:
        raise typer.Exit(code=1)


@app.command()
def setup() -> None:
    """Wizard interactivo: guarda conexión y credenciales en el .env del usuario."""

    protocol = typer.prompt("Octane protocol", default="https").strip().lower()
    if protocol not in {"http", "https"}:
        raise typer.BadParameter("protocol must be http or https")
    host = typer.prompt("Octane host").strip()
    port = typer.prompt("Octane port (empty for default)", default="", show_default=False).strip()
    sharedspace = typer.prompt("Shared space id").strip()
    workspace = typer.prompt("Workspace id").strip()

    use_api_key = typer.confirm("Authenticate with an API key (client id/secret)?", default=False)
    values: dict[str, str | None] = {
        "OCTANE_CHATOPS_OCTANE_PROTOCOL": protocol,
        "OCTANE_CHATOPS_OCTANE_HOST": host,
        "OCTANE_CHATOPS_OCTANE_PORT": port or None,
        "OCTANE_CHATOPS_OCTANE_SHAREDSPACE": sharedspace,
        "OCTANE_CHATOPS_OCTANE_WORKSPACE": workspace,
    }
    if use_api_key:
        values["OCTANE_CHATOPS_OCTANE_CLIENT_ID"] = typer.prompt("Client id").strip()
        values["OCTANE_CHATOPS_OCTANE_CLIENT_SECRET"] = typer.prompt("Client secret", hide_input=True).strip()
    else:
        values["OCTANE_CHATOPS_OCTANE_USERNAME"] = typer.prompt("Username").strip()
        values["OCTANE_CHATOPS_OCTANE_PASSWORD"] = typer.prompt("Password", hide_input=True).strip()

    slack_token = typer.prompt("Slack bot token (optional)", default="", show_default=False).strip()
    values["OCTANE_CHATOPS_SLACK_TOKEN"] = slack_token or None

    if not host or not sharedspace or not workspace:
        raise typer.BadParameter("host, shared space and workspace are required")

    env_path = write_user_env_vars(values)
    _console.print(f"[green]Saved Octane config to:[/green] {env_path}")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
