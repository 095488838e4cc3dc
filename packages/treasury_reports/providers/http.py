"""Shared request helper for provider clients."""

from __future__ import annotations

from typing import Any

import httpx

from ..errors import UpstreamFetchError
from ..logging_setup import get_logger

_logger = get_logger("treasury_reports.providers.http")


def build_client(timeout: float) -> httpx.Client:
    return httpx.Client(timeout=timeout, headers={"accept": "application/json"})


def request_json(
    client: httpx.Client,
    method: str,
    url: str,
    *,
    source: str,
    what: str,
    **kwargs: Any,
) -> Any:
    """Send a request and return the decoded JSON body.

    ``what`` names the call in error messages; URLs are left out because some
    of them embed credentials (RPC endpoints with API keys, query-string keys).
    """

    _logger.debug("%s %s", source, what)
    try:
        response = client.request(method, url, **kwargs)
    except httpx.HTTPError as exc:
        raise UpstreamFetchError(source, f"{what} failed: {exc.__class__.__name__}") from exc

    if response.is_error:
        body = response.text[:400]
        raise UpstreamFetchError(
            source,
            f"{what} -> {response.status_code} {body}".rstrip(),
            status_code=response.status_code,
        )

    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamFetchError(source, f"{what} returned invalid JSON") from exc


__all__ = ["build_client", "request_json"]
