"""Etherscan v2 ``tokentx`` client (ERC-20 transfers for one address/contract)."""

from __future__ import annotations

from typing import Any

import httpx

from ..errors import UpstreamFetchError
from .http import build_client, request_json

ETHERSCAN_API_URL = "https://api.etherscan.io/v2/api"
_SOURCE = "etherscan"
_EMPTY_MESSAGE = "No transactions found"


class EtherscanClient:
    def __init__(
        self,
        *,
        api_key: str,
        client: httpx.Client | None = None,
        timeout: float = 20.0,
        api_url: str = ETHERSCAN_API_URL,
    ) -> None:
        self._api_key = api_key
        self._api_url = api_url
        self._client = client or build_client(timeout)

    def token_transfers(
        self,
        *,
        chain_id: int,
        address: str,
        contract: str,
        offset: int = 25,
        page: int = 1,
    ) -> list[dict[str, Any]]:
        """Return the newest ``offset`` token transfer rows (``sort=desc``).

        An Etherscan ``status`` other than ``"1"`` is an error, except for the
        "No transactions found" response, which yields an empty list.
        """

        data = request_json(
            self._client,
            "GET",
            self._api_url,
            source=_SOURCE,
            what=f"tokentx chain={chain_id}",
            params={
                "chainid": str(chain_id),
                "module": "account",
                "action": "tokentx",
                "address": address,
                "contractaddress": contract,
                "page": str(page),
                "offset": str(offset),
                "sort": "desc",
                "apikey": self._api_key,
            },
        )
        if not isinstance(data, dict):
            raise UpstreamFetchError(_SOURCE, "tokentx returned a non-object")

        if str(data.get("status")) != "1" and data.get("message") != _EMPTY_MESSAGE:
            result = data.get("result")
            tail = result if isinstance(result, str) else repr(result)
            raise UpstreamFetchError(
                _SOURCE, f"{data.get('message') or 'unknown'} ({tail[:140]})"
            )

        result = data.get("result")
        return [r for r in result if isinstance(r, dict)] if isinstance(result, list) else []


__all__ = ["ETHERSCAN_API_URL", "EtherscanClient"]
