from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from .auth import AuthProvider
from .errors import ApiError
from .logging_conf import get_logger

__all__ = ["authenticated_fetch", "with_bearer"]

logger = get_logger("healthcare_client.fetch")


def with_bearer(headers: Mapping[str, str] | None, token: str) -> dict[str, str]:
    """Return a copy of `headers` with the Authorization entry set.

    Other entries are kept; the caller's mapping is left untouched. Any
    existing authorization entry is dropped whatever its case.
    """
    merged = {k: v for k, v in (headers or {}).items() if k.lower() != "authorization"}
    merged["Authorization"] = f"Bearer {token}"
    return merged


async def authenticated_fetch(
    http: httpx.AsyncClient,
    auth: AuthProvider,
    url: str,
    *,
    method: str = "GET",
    headers: Mapping[str, str] | None = None,
    params: Mapping[str, Any] | None = None,
) -> httpx.Response | None:
    """Send a request with the current bearer token.

    - No token: starts sign-in and returns None without sending anything
    - 2xx: returns the response as-is; the caller reads the body
    - 401: starts sign-in and returns None
    - Any other status: raises ApiError carrying the response body text
    """
    token = auth.get_access_token()
    if not token:
        logger.info("fetch.no_token", extra={"event": "no_token", "url": url})
        auth.sign_in()
        return None

    response = await http.request(
        method, url, headers=with_bearer(headers, token), params=params
    )

    if response.is_success:
        logger.debug(
            "fetch.ok",
            extra={"event": "fetch_ok", "url": url, "status_code": response.status_code},
        )
        return response

    if response.status_code == httpx.codes.UNAUTHORIZED:
        logger.info("fetch.unauthorized", extra={"event": "unauthorized", "url": url})
        auth.sign_in()
        return None

    # Streamed responses have no body until it is read.
    await response.aread()
    body = response.text
    logger.error(
        "fetch.failed",
        extra={"event": "fetch_failed", "url": url, "status_code": response.status_code},
    )
    raise ApiError(body, status_code=response.status_code, url=url)
