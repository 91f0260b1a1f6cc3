"""
HTTP Helpers Shared by Provider Adapters.

Every outbound call goes through fetch() so that all providers fail the
same way: any httpx problem becomes an UpstreamError, carrying the
provider's HTTP status when there was a response.

    - Non-2xx response      -> UpstreamError(status=<response status>)
    - Timeout               -> UpstreamError(status=None)
    - Connection/transport  -> UpstreamError(status=None)

Usage:
    from tts_relay.tts.engines.helpers import fetch_bytes, fetch_json

    audio = await fetch_bytes(client, url, params={"q": text}, engine="google")
    payload = await fetch_json(client, url, params={"text": text}, engine="voicevox")
"""
from __future__ import annotations

import time
from typing import Any, Dict, Optional

import httpx

from tts_relay.core.errors import UpstreamError
from tts_relay.core.logging import get_logger, verbose

_LOG = get_logger("tts-relay.upstream")


def _host(url: str) -> str:
    try:
        return httpx.URL(url).host or url
    except httpx.InvalidURL:
        return url


async def fetch(
    client: httpx.AsyncClient,
    url: str,
    engine: str,
    params: Optional[Dict[str, Any]] = None,
) -> httpx.Response:
    """
    Issue a GET request and translate failures into UpstreamError.

    Args:
        client: Shared async client (timeout and redirects configured there).
        url: Absolute URL to fetch.
        engine: Engine name, used in error messages and logs.
        params: Query parameters.

    Returns:
        The successful (2xx) response, body already read.

    Raises:
        UpstreamError: On timeout, transport failure or non-2xx status.
    """
    host = _host(url)
    start = time.perf_counter()
    try:
        response = await client.get(url, params=params)
    except httpx.TimeoutException:
        raise UpstreamError(f"{engine}: request to {host} timed out")
    except httpx.HTTPError as e:
        raise UpstreamError(f"{engine}: request to {host} failed: {e}")

    seconds = round(time.perf_counter() - start, 4)
    verbose(_LOG, "upstream_call", seconds=seconds, engine=engine, host=host, status=response.status_code)

    if not response.is_success:
        raise UpstreamError(
            f"{engine}: {host} returned {response.status_code} {response.reason_phrase}".rstrip(),
            status=response.status_code,
        )
    return response


async def fetch_bytes(
    client: httpx.AsyncClient,
    url: str,
    engine: str,
    params: Optional[Dict[str, Any]] = None,
) -> bytes:
    """GET a URL and return the raw body; an empty body is a failure."""
    response = await fetch(client, url, engine, params=params)
    if not response.content:
        raise UpstreamError(f"{engine}: empty audio response")
    return response.content


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    engine: str,
    params: Optional[Dict[str, Any]] = None,
) -> Any:
    """GET a URL and decode its JSON body."""
    response = await fetch(client, url, engine, params=params)
    try:
        return response.json()
    except ValueError:
        raise UpstreamError(f"{engine}: invalid JSON from {_host(url)}")
