"""Configuración del bot (conexión a Octane, Slack y comportamiento del chat).

- Variables de entorno con prefijo `OCTANE_CHATOPS_`, leídas con pydantic-settings.
- `.env` del proyecto y `.env` del usuario (lo escribe `octane-chatops setup`);
  el del proyecto manda.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import dotenv_values, set_key
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_DIR_NAME = "octane-chatops"


def get_user_config_dir() -> Path:
    """`%APPDATA%`, `~/Library/Application Support` o `$XDG_CONFIG_HOME` (`~/.config`)."""

    home = Path.home()
    if sys.platform.startswith("win"):
        root = Path(os.environ.get("APPDATA") or home)
    elif sys.platform == "darwin":
        root = home / "Library" / "Application Support"
    else:
        root = Path(os.environ.get("XDG_CONFIG_HOME") or home / ".config")
    return root / APP_DIR_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def read_env_file(env_path: Path) -> dict[str, str]:
    return {key: value for key, value in dotenv_values(env_path).items() if value is not None}


def write_user_env_vars(values: dict[str, str | None], env_path: Path | None = None) -> Path:
    """Añade/actualiza claves en el .env del usuario; los valores `None` no se tocan.

    El fichero guarda credenciales: se deja legible solo por su dueño.
    """

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)
    env_path.touch(mode=0o600, exist_ok=True)
    for key, value in values.items():
        if value is not None:
            set_key(str(env_path), key, value, quote_mode="never")
    return env_path


class AppSettings(BaseSettings):
    """Settings de la app.

    Se instancian en el borde (CLI) y se pasan a adapters y servicios; los tests
    usan `AppSettings(_env_file=None, ...)` para no depender del entorno.
    """

    model_config = SettingsConfigDict(
        env_prefix="OCTANE_CHATOPS_",
        extra="ignore",
        case_sensitive=False,
        # el último fichero tiene prioridad
        env_file=(str(get_user_env_file()), ".env"),
        env_file_encoding="utf-8",
    )

    octane_protocol: str = Field(
        default="https",
        pattern=r"^https?$",
        description="Protocolo del servidor Octane.",
    )
    octane_host: str | None = Field(
        default=None,
        description="Host del servidor Octane.",
    )
    octane_port: int | None = Field(
        default=None,
        ge=1,
        le=65535,
        description="Puerto del servidor Octane (opcional).",
    )
    octane_sharedspace: str | None = Field(
        default=None,
        description="Shared space con el que interactúa el bot.",
    )
    octane_workspace: str | None = Field(
        default=None,
        description="Workspace con el que interactúa el bot.",
    )
    octane_username: str | None = Field(default=None)
    octane_password: str | None = Field(default=None)
    octane_client_id: str | None = Field(default=None)
    octane_client_secret: str | None = Field(default=None)
    octane_tech_preview: bool = Field(
        default=True,
        description="Envía las cabeceras de la API tech preview de Octane.",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="octane-chatops/0.1",
        min_length=1,
        description="User-Agent para las peticiones HTTP.",
    )

    slack_token: str | None = Field(
        default=None,
        description="Token de bot de Slack para chat.postMessage (opcional).",
    )
    slack_api_url: str = Field(
        default="https://slack.com/api",
        min_length=8,
        description="Base URL de la Web API de Slack.",
    )

    command_prefix: str = Field(
        default="octane",
        min_length=1,
        description="Palabra con la que empiezan los comandos del chat.",
    )
    search_limit: int = Field(
        default=25,
        ge=1,
        le=500,
        description="Máximo de resultados mostrados por `search`.",
    )
    indent_unit_px: int = Field(
        default=40,
        gt=0,
        description="Píxeles de margin-left que equivalen a un nivel de indentación.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging (DEBUG, INFO, WARNING, ERROR).",
    )

    @property
    def octane_base_url(self) -> str:
        port = f":{self.octane_port}" if self.octane_port else ""
        return f"{self.octane_protocol}://{self.octane_host}{port}"

    def has_connection_settings(self) -> bool:
        return bool(self.octane_host and self.octane_sharedspace and self.octane_workspace)

    def credentials(self) -> dict[str, str] | None:
        """Credenciales para `/authentication/sign_in`.

        Usuario/contraseña tienen prioridad sobre client id/secret (API key).
        """

        if self.octane_username and self.octane_password:
            return {"user": self.octane_username, "password": self.octane_password}
        if self.octane_client_id and self.octane_client_secret:
            return {"client_id": self.octane_client_id, "client_secret": self.octane_client_secret}
        return None
