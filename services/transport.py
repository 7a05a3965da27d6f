"""Shared httpx call wrapper that maps transport failures onto the engine's errors."""

from __future__ import annotations

from typing import Any, Collection

import httpx

from models.errors import TransportError, TransportTimeoutError, UpstreamStatusError


async def send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    timeout: float,
    accept: Collection[int] = (200,),
    **kwargs: Any,
) -> httpx.Response:
    try:
        response = await client.request(method, url, timeout=timeout, **kwargs)
    except httpx.TimeoutException as exc:
        raise TransportTimeoutError(f"{method} {url} timed out after {timeout}s") from exc
    except httpx.TransportError as exc:
        raise TransportError(f"{method} {url} failed: {exc}") from exc
    if response.status_code not in accept:
        raise UpstreamStatusError(response.status_code, url)
    return response


def decode_json(response: httpx.Response) -> Any:
    """Return the JSON body, or ``None`` when the body is empty or not JSON."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None
