"""Minimal Ethereum JSON-RPC client: balances, ERC-20 reads, Alchemy transfers.

Only the handful of calls the treasury snapshot needs are implemented. ERC-20
reads use ``eth_call`` with hand-encoded selectors; results are decoded as
``uint256``.
"""

from __future__ import annotations

from collections.abc import Sequence
from itertools import count
from typing import Any

import httpx

from ..errors import UpstreamFetchError
from .http import build_client, request_json

_SELECTOR_DECIMALS = "0x313ce567"
_SELECTOR_BALANCE_OF = "0x70a08231"


def _encode_address(address: str) -> str:
    return address.lower().removeprefix("0x").rjust(64, "0")


def decode_uint(result: Any) -> int:
    """Decode a hex quantity or ABI ``uint256`` word (``"0x"`` decodes to 0)."""

    if not isinstance(result, str) or not result.startswith("0x"):
        raise ValueError(f"not a hex quantity: {result!r}")
    digits = result[2:]
    return int(digits, 16) if digits else 0


class JsonRpcClient:
    def __init__(
        self,
        rpc_url: str,
        *,
        source: str = "rpc",
        client: httpx.Client | None = None,
        timeout: float = 20.0,
    ) -> None:
        self._url = rpc_url
        self._source = source
        self._client = client or build_client(timeout)
        self._ids = count(1)

    def call(self, method: str, params: Sequence[Any]) -> Any:
        body = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": list(params)}
        data = request_json(
            self._client, "POST", self._url, source=self._source, what=method, json=body
        )
        if not isinstance(data, dict):
            raise UpstreamFetchError(self._source, f"{method} returned a non-object")
        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise UpstreamFetchError(self._source, f"{method} error: {message or 'unknown'}")
        return data.get("result")

    def _uint(self, method: str, params: Sequence[Any]) -> int:
        result = self.call(method, params)
        try:
            return decode_uint(result)
        except ValueError as exc:
            raise UpstreamFetchError(self._source, f"{method} returned {result!r}") from exc

    def get_balance(self, address: str) -> int:
        return self._uint("eth_getBalance", [address, "latest"])

    def erc20_decimals(self, contract: str) -> int:
        return self._uint("eth_call", [{"to": contract, "data": _SELECTOR_DECIMALS}, "latest"])

    def erc20_balance(self, contract: str, owner: str) -> int:
        data = _SELECTOR_BALANCE_OF + _encode_address(owner)
        return self._uint("eth_call", [{"to": contract, "data": data}, "latest"])

    def asset_transfers(
        self,
        *,
        contract_addresses: Sequence[str],
        from_address: str | None = None,
        to_address: str | None = None,
        max_count: int = 25,
    ) -> list[dict[str, Any]]:
        """Alchemy ``alchemy_getAssetTransfers`` for ERC-20 transfers.

        ``fromAddress``/``toAddress`` are only sent when given; the API treats
        an omitted key differently from a null one.
        """

        params: dict[str, Any] = {
            "fromBlock": "0x0",
            "toBlock": "latest",
            "category": ["erc20"],
            "contractAddresses": list(contract_addresses),
            "maxCount": hex(max_count),
            "order": "desc",
            "withMetadata": True,
            "excludeZeroValue": True,
        }
        if from_address:
            params["fromAddress"] = from_address
        if to_address:
            params["toAddress"] = to_address

        result = self.call("alchemy_getAssetTransfers", [params])
        transfers = result.get("transfers") if isinstance(result, dict) else None
        return [t for t in transfers if isinstance(t, dict)] if isinstance(transfers, list) else []


__all__ = ["JsonRpcClient", "decode_uint"]
