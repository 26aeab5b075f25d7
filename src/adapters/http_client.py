"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers, autenticación y verificación TLS contra el BMC.
- Facilita testeo: se puede sustituir el transporte por `httpx.MockTransport`.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings


def build_async_client(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    extra_headers: dict[str, str] | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` apuntando al puente REST del BMC.

    Por qué un builder:
    - Centraliza base_url/timeouts/headers para que todas las llamadas al
      mapper se comporten igual.
    - `transport` permite inyectar un transporte falso en tests.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
        "Content-Type": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)

    auth: httpx.BasicAuth | None = None
    if settings.rest_username:
        auth = httpx.BasicAuth(settings.rest_username, settings.rest_password or "")

    return httpx.AsyncClient(
        base_url=settings.rest_base_url.rstrip("/"),
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        auth=auth,
        verify=settings.rest_verify_tls,
        transport=transport,
    )
