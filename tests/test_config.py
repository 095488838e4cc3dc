from __future__ import annotations

from pathlib import Path

import pytest

from treasury_reports.config import (
    DEFAULT_TREASURY_ADDRESS,
    Settings,
    load_settings,
    parse_account_spec,
)
from treasury_reports.errors import ConfigError


def test_defaults_without_environment():
    s = load_settings()

    assert s.output_dir == Path("data")
    assert (s.http_timeout, s.max_workers, s.transfer_limit) == (20.0, 4, 25)
    assert s.treasury_address == DEFAULT_TREASURY_ADDRESS
    assert s.moneybird_accounts == {}
    assert s.rpc_urls == {}


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TREASURY_REPORTS_OUTPUT_DIR", "/srv/site/data")
    monkeypatch.setenv("TREASURY_REPORTS_MAX_WORKERS", "99")
    monkeypatch.setenv("TREASURY_REPORTS_TRANSFER_LIMIT", "10")
    monkeypatch.setenv("ETH_RPC_URL", " https://eth.example ")
    monkeypatch.setenv("MONEYBIRD_FINANCIAL_ACCOUNT_ID", "bank=1, card=2")

    s = load_settings()

    assert s.output_dir == Path("/srv/site/data")
    assert s.max_workers == 16
    assert s.transfer_limit == 10
    assert s.rpc_urls == {"eth": "https://eth.example"}
    assert s.moneybird_accounts == {"bank": "1", "card": "2"}


def test_explicit_output_dir_wins(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("TREASURY_REPORTS_OUTPUT_DIR", "/elsewhere")
    assert load_settings(output_dir=tmp_path).output_dir == tmp_path


@pytest.mark.parametrize(
    ("name", "value"),
    [("TREASURY_REPORTS_MAX_WORKERS", "many"), ("TREASURY_REPORTS_HTTP_TIMEOUT", "-1")],
)
def test_invalid_numbers_raise(monkeypatch: pytest.MonkeyPatch, name: str, value: str):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigError):
        load_settings()


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, {}),
        ("", {}),
        ("123", {"bank": "123"}),
        ("123,456", {"123": "123", "456": "456"}),
        ("bank=1,savings=2", {"bank": "1", "savings": "2"}),
    ],
)
def test_parse_account_spec(raw, expected):
    assert parse_account_spec(raw) == expected


@pytest.mark.parametrize("raw", ["bank=1,bank=2", "=1", "bank="])
def test_parse_account_spec_rejects_bad_entries(raw):
    with pytest.raises(ConfigError):
        parse_account_spec(raw)


def test_require_moneybird_names_the_missing_variable():
    with pytest.raises(ConfigError, match="MONEYBIRD_API_TOKEN"):
        Settings().require_moneybird()
    with pytest.raises(ConfigError, match="MONEYBIRD_FINANCIAL_ACCOUNT_ID"):
        Settings(moneybird_token="t", moneybird_administration_id="a").require_moneybird()


def test_require_onchain_checks_every_chain():
    with pytest.raises(ConfigError, match="BASE_RPC_URL"):
        Settings(rpc_urls={"eth": "x"}, etherscan_api_key="k").require_onchain()
    Settings(rpc_urls={"eth": "x", "base": "y"}, etherscan_api_key="k").require_onchain()
