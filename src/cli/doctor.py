"""`doctor`: comprueba configuración, acceso a Octane y token de Slack."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from slack_sdk.errors import SlackApiError

from adapters.octane_client import OctaneApiError, OctaneClient, OctaneConfigError
from adapters.slack_poster import SlackPoster
from cli.ui_components import build_checks_table
from core.config import AppSettings, get_user_env_file, read_env_file

app = typer.Typer(no_args_is_help=True, help="Check the Octane connection and the Slack token.")

_console = Console()


async def _check_octane(settings: AppSettings) -> list[tuple[str, bool, str]]:
    """Connectivity + sign-in + a read of the workspace catalog."""

    rows: list[tuple[str, bool, str]] = []
    try:
        client = OctaneClient(settings)
    except OctaneConfigError as exc:
        return [("Octane client", False, str(exc))]

    async with client:
        try:
            await client.authenticate()
        except OctaneApiError as exc:
            status = f"HTTP {exc.status}: " if exc.status else ""
            rows.append(("Octane sign-in", False, f"{status}{exc}"))
            return rows
        rows.append(("Octane sign-in", True, settings.octane_base_url))

        try:
            phases = await client.list_phases()
        except OctaneApiError as exc:
            rows.append(("Workspace access", False, str(exc)))
        else:
            rows.append(("Workspace access", True, f"{len(phases)} phases"))
    return rows


async def _check_slack(settings: AppSettings) -> tuple[bool, str]:
    try:
        body = await SlackPoster(settings).auth_test()
    except SlackApiError as exc:
        return False, str(exc.response.get("error", "unknown_error"))
    except Exception as exc:
        return False, str(exc)
    return True, f"team={body.get('team', '?')} user={body.get('user', '?')}"


def _user_config_row() -> tuple[str, str]:
    env_path = get_user_env_file()
    if not env_path.exists():
        return "MISSING", f"{env_path} (not created yet)"
    keys = sorted(key for key in read_env_file(env_path) if key.startswith("OCTANE_CHATOPS_"))
    names = ", ".join(key.removeprefix("OCTANE_CHATOPS_").lower() for key in keys) or "no keys"
    return "OK", f"{env_path}: {names}"


@app.command()
def run() -> None:
    """Show which connection settings are present and whether Octane and Slack accept them."""

    settings = AppSettings()

    table = build_checks_table("Octane ChatOps Doctor")

    status, detail = _user_config_row()
    table.add_row("User config", status, detail)

    # Config
    if settings.has_connection_settings():
        table.add_row(
            "Octane target",
            "OK",
            f"{settings.octane_base_url} ss={settings.octane_sharedspace} ws={settings.octane_workspace}",
        )
    else:
        table.add_row("Octane target", "FAIL", "Set OCTANE_CHATOPS_OCTANE_HOST / _SHAREDSPACE / _WORKSPACE")

    credentials = settings.credentials()
    if credentials is None:
        table.add_row("Credentials", "FAIL", "No username/password nor client id/secret")
    else:
        kind = "user/password" if "user" in credentials else "API key"
        table.add_row("Credentials", "OK", kind)

    # Solo si hay conexión configurada.
    if settings.has_connection_settings() and credentials is not None:
        for name, ok, detail in asyncio.run(_check_octane(settings)):
            table.add_row(name, "OK" if ok else "FAIL", detail)

    if settings.slack_token:
        ok_slack, detail_slack = asyncio.run(_check_slack(settings))
        table.add_row("Slack token", "OK" if ok_slack else "FAIL", detail_slack)
    else:
        table.add_row("Slack token", "OPTIONAL", "Not set -> replies only in the console")

    _console.print(table)

    if credentials is None or not settings.has_connection_settings():
        _console.print("\n[yellow]Note:[/yellow] run `octane-chatops setup` to store the connection settings.")
