"""Helpers for reading the currency and market endpoints."""

from __future__ import annotations

from typing import Any, Optional

import httpx


class UpstreamError(Exception):
    """A fetch that did not produce a JSON body (bad status, transport or parse failure)."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def make_client(timeout_s: float = 10.0, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout_s, transport=transport)


async def fetch_json(client: httpx.AsyncClient, url: str, label: str) -> Any:
    """
    GET `url` and return the decoded JSON body.

    Non-2xx responses raise UpstreamError("<label> API <status>"); an undecodable
    body raises UpstreamError carrying the decoder's message.
    """
    try:
        response = await client.get(url)
    except httpx.HTTPError as exc:
        raise UpstreamError(f"{label} API unreachable: {exc}") from exc

    if not response.is_success:
        raise UpstreamError(f"{label} API {response.status_code}", status_code=response.status_code)

    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamError(str(exc), status_code=response.status_code) from exc
