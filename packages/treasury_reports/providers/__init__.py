"""HTTP clients for the upstream data sources.

The clients are thin: they issue one request per call, translate every
failure into :class:`~treasury_reports.errors.UpstreamFetchError`, and return
provider payloads without interpretation. Nothing here retries.
"""

from .etherscan import EtherscanClient
from .moneybird import MoneybirdClient
from .rpc import JsonRpcClient

__all__ = ["EtherscanClient", "MoneybirdClient", "JsonRpcClient"]
