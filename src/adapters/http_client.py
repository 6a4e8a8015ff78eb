"""Construcción del cliente httpx para la REST API de Octane.

- Timeout, User-Agent y política de redirects salen de `AppSettings`.
- `transport` permite inyectar un `httpx.MockTransport` en los tests.
- El cliente conserva cookies: la sesión de Octane (LWSSO) vive en ellas.
"""

from __future__ import annotations

from typing import Mapping

import httpx

from core.config import AppSettings

TECH_PREVIEW_HEADERS: dict[str, str] = {
    "ALM_OCTANE_TECH_PREVIEW": "true",
    "HPECLIENTTYPE": "HPE_REST_API_TECH_PREVIEW",
}


def default_headers(settings: AppSettings, extra: Mapping[str, str] | None = None) -> dict[str, str]:
    return {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
        **(extra or {}),
    }


def build_async_client(
    settings: AppSettings | None = None,
    *,
    base_url: str = "",
    extra_headers: Mapping[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    settings = settings or AppSettings()
    return httpx.AsyncClient(
        base_url=base_url,
        headers=default_headers(settings, extra_headers),
        timeout=settings.http_timeout_seconds,
        follow_redirects=True,
        transport=transport,
    )
