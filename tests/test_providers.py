from __future__ import annotations

import json

import httpx
import pytest

from treasury_reports.errors import UpstreamFetchError
from treasury_reports.providers import EtherscanClient, JsonRpcClient, MoneybirdClient
from treasury_reports.providers.rpc import decode_uint


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_moneybird_sends_bearer_token_and_parses_cash_flow():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "opening_balance": "10.00",
                "closing_balance": "12.50",
                "cash_paid_by_ledger_account": {"5": "-1.00"},
            },
        )

    mb = MoneybirdClient(token="secret", administration_id=7, client=_client(handler))
    report = mb.cash_flow("42", "20250101..20250131")

    assert str(report.closing_balance) == "12.50"
    assert report.cash_paid_by_ledger_account == {"5": "-1.00"}
    req = seen[0]
    assert req.headers["authorization"] == "Bearer secret"
    assert req.url.path == "/api/v2/7/reports/cash_flow.json"
    assert req.url.params["period"] == "20250101..20250131"
    assert req.url.params["financial_account_id"] == "42"


def test_moneybird_mutation_count_is_list_length():
    def handler(request: httpx.Request) -> httpx.Response:
        assert "period:20250201..20250228" in request.url.params["filter"]
        return httpx.Response(200, json=[{"id": "1", "version": 1}, {"id": "2", "version": 3}])

    mb = MoneybirdClient(token="t", administration_id="7", client=_client(handler))
    assert mb.mutation_count("42", "20250201..20250228") == 2


def test_moneybird_http_error_becomes_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="internal")

    mb = MoneybirdClient(token="t", administration_id="7", client=_client(handler))
    with pytest.raises(UpstreamFetchError) as info:
        mb.financial_accounts()

    assert info.value.source == "moneybird"
    assert info.value.status_code == 500
    assert "internal" in str(info.value)


def test_moneybird_listing_must_be_a_list():
    mb = MoneybirdClient(
        token="t",
        administration_id="7",
        client=_client(lambda r: httpx.Response(200, json={"error": "nope"})),
    )
    with pytest.raises(UpstreamFetchError):
        mb.ledger_accounts()


def test_invalid_json_is_an_upstream_error():
    mb = MoneybirdClient(
        token="t",
        administration_id="7",
        client=_client(lambda r: httpx.Response(200, text="<html>")),
    )
    with pytest.raises(UpstreamFetchError, match="invalid JSON"):
        mb.financial_accounts()


def test_transport_error_is_an_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    mb = MoneybirdClient(token="t", administration_id="7", client=_client(handler))
    with pytest.raises(UpstreamFetchError, match="ConnectError"):
        mb.financial_accounts()


def test_etherscan_returns_rows_and_treats_empty_as_ok():
    responses = iter(
        [
            {"status": "1", "message": "OK", "result": [{"hash": "0x1"}, "junk"]},
            {"status": "0", "message": "No transactions found", "result": []},
        ]
    )

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["action"] == "tokentx"
        assert request.url.params["sort"] == "desc"
        assert request.url.params["offset"] == "25"
        return httpx.Response(200, json=next(responses))

    es = EtherscanClient(api_key="k", client=_client(handler))
    kwargs = {"chain_id": 1, "address": "0xme", "contract": "0xtoken"}

    assert es.token_transfers(**kwargs) == [{"hash": "0x1"}]
    assert es.token_transfers(**kwargs) == []


def test_etherscan_error_status_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "0", "message": "NOTOK", "result": "Invalid API Key"})

    es = EtherscanClient(api_key="bad", client=_client(handler))
    with pytest.raises(UpstreamFetchError, match="Invalid API Key"):
        es.token_transfers(chain_id=1, address="0xme", contract="0xtoken")


def test_rpc_reads_balances_and_decimals():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        method = body["method"]
        if method == "eth_getBalance":
            result = "0xde0b6b3a7640000"
        elif body["params"][0]["data"] == "0x313ce567":
            result = "0x" + "6".rjust(64, "0")
        else:
            assert body["params"][0]["data"].endswith("ab" * 20)
            result = "0x" + format(2_500_000, "x").rjust(64, "0")
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    rpc = JsonRpcClient("https://rpc.example", client=_client(handler))

    assert rpc.get_balance("0x" + "AB" * 20) == 10**18
    assert rpc.erc20_decimals("0xtoken") == 6
    assert rpc.erc20_balance("0xtoken", "0x" + "AB" * 20) == 2_500_000


def test_rpc_error_member_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"message": "rate limited"}})

    rpc = JsonRpcClient("https://rpc.example", source="base-rpc", client=_client(handler))
    with pytest.raises(UpstreamFetchError, match="rate limited") as info:
        rpc.get_balance("0xme")
    assert info.value.source == "base-rpc"


def test_asset_transfers_sends_direction_only_when_given():
    sent: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        params = json.loads(request.content)["params"][0]
        sent.append(params)
        return httpx.Response(200, json={"result": {"transfers": [{"hash": "0x1"}, None]}})

    rpc = JsonRpcClient("https://rpc.example", client=_client(handler))
    rows = rpc.asset_transfers(contract_addresses=["0xtoken"], from_address="0xme", max_count=25)

    assert rows == [{"hash": "0x1"}]
    assert sent[0]["fromAddress"] == "0xme"
    assert "toAddress" not in sent[0]
    assert sent[0]["maxCount"] == "0x19"
    assert sent[0]["order"] == "desc"


def test_decode_uint():
    assert decode_uint("0x") == 0
    assert decode_uint("0x10") == 16
    with pytest.raises(ValueError):
        decode_uint(None)
