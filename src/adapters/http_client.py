"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza base URL, timeouts, headers y autenticación para todas las
  llamadas a la API médica.
- Facilita testeo: se le puede inyectar un `httpx.MockTransport`.
"""

from __future__ import annotations

from typing import Any, Mapping

import httpx

from core.config import AppSettings


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` apuntando a `<base>/api-ia`.

    Si hay `api_key` configurada se adjunta como `Authorization: Bearer`;
    si no, las llamadas salen sin autenticar y la API puede responder 401.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json, text/plain;q=0.9, */*;q=0.8",
    }
    if settings.api_key:
        headers["Authorization"] = f"Bearer {settings.api_key}"
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        base_url=settings.api_root,
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def encode_fields(fields: Mapping[str, Any] | None) -> dict[str, str]:
    """Serializa campos para query string o form-urlencoded.

    - `None` se omite.
    - Booleanos como `true`/`false` (lo que espera la API).
    - Todo lo demás con `str()`.
    """

    if not fields:
        return {}
    out: dict[str, str] = {}
    for key, value in fields.items():
        if value is None:
            continue
        if isinstance(value, bool):
            out[key] = "true" if value else "false"
        elif isinstance(value, float) and value.is_integer():
            out[key] = str(int(value))
        else:
            out[key] = str(value)
    return out
