"""
HTTP helpers.

This module centralizes the minimal HTTP client logic used by the remote catalog backend.

Design goals:
- Small surface area (GET JSON, send JSON).
- Deterministic defaults (timeout + User-Agent).
- Raise on non-2xx so callers can decide how to fail.
"""

from __future__ import annotations

from typing import Any

import httpx


DEFAULT_USER_AGENT = "harvestmap/0.1.0 (+https://local)"


def _headers(extra: dict[str, str] | None) -> dict[str, str]:
    request_headers = {"User-Agent": DEFAULT_USER_AGENT}
    if extra:
        request_headers.update(extra)
    return request_headers


def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
    transport: httpx.BaseTransport | None = None,
) -> Any:
    """GET `url` and return the decoded JSON response.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
        ValueError: If the response body is not valid JSON.
    """
    with httpx.Client(timeout=timeout_seconds, transport=transport) as client:
        resp = client.get(url, params=params, headers=_headers(headers))
        resp.raise_for_status()
        return resp.json()


def send_json(
    method: str,
    url: str,
    *,
    payload: Any = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
    transport: httpx.BaseTransport | None = None,
) -> Any:
    """Send `payload` as a JSON body and return the decoded response (None for empty bodies).

    Used for product create/update/delete against the marketplace backend.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
    """
    with httpx.Client(timeout=timeout_seconds, transport=transport) as client:
        resp = client.request(method, url, json=payload, headers=_headers(headers))
        resp.raise_for_status()
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()
