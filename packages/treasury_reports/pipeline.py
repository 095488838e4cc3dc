"""End-to-end export runs: fetch, aggregate, assemble, publish.

Each financial account (Moneybird) and each chain (on-chain) is an isolated
unit: a fetch failure aborts that unit only, is recorded in the source's
``status.json`` and the run moves on. Failures that affect every unit (the
shared account/ledger listings) propagate to the caller.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import httpx

from .amounts import format_units
from .config import CHAINS, ChainConfig, Settings
from .dedup import merge_and_dedup
from .errors import UpstreamFetchError
from .fanout import fan_out
from .ledger import build_category_index, category_records_from_payload
from .logging_setup import get_logger
from .models import (
    AccountReport,
    CategoryIndex,
    MoneybirdMetaDocument,
    NativeBalance,
    OnchainMetaDocument,
    TokenBalance,
    TreasurySnapshotDocument,
)
from .monthly import build_month, month_period, reporting_months
from .providers.etherscan import EtherscanClient
from .providers.http import build_client
from .providers.moneybird import MoneybirdClient
from .providers.rpc import JsonRpcClient
from .publish import utc_now_iso, write_json
from .reports import (
    account_summary_document,
    assemble,
    category_rollup_document,
    ledger_accounts_document,
    monthly_series_document,
    status_document,
)
from .transfers import normalize_rows, raw_from_alchemy, raw_from_etherscan

_logger = get_logger("treasury_reports.pipeline")

# Per-unit failures that are recorded instead of aborting the whole run.
_UNIT_ERRORS = (UpstreamFetchError, LookupError)


@dataclass
class RunResult:
    source: str
    results: dict[str, BaseException | None] = field(default_factory=dict)

    @property
    def failed(self) -> list[str]:
        return [label for label, exc in self.results.items() if exc is not None]

    @property
    def ok(self) -> bool:
        return not self.failed


# ---------------------------------------------------------------------------
# Moneybird
# ---------------------------------------------------------------------------


def build_account_report(
    client: MoneybirdClient,
    account_row: Mapping[str, Any],
    *,
    year: int,
    today: date,
    concurrency: int,
) -> AccountReport:
    """Fetch every reporting month of one account and assemble its report.

    Months are fetched concurrently; any failed month aborts the account.
    """

    account_id = str(account_row.get("id"))

    def _fetch_month(month: int):
        period = month_period(year, month)
        report = client.cash_flow(account_id, period)
        mutations = client.mutation_count(account_id, period)
        return build_month(account_id, period, report, mutations)

    snapshots = fan_out(reporting_months(year, today), _fetch_month, concurrency=concurrency)
    return assemble(account_row, snapshots)


def _publish_account(
    report: AccountReport,
    index: CategoryIndex,
    out_dir: Path,
    *,
    administration_id: str,
    year: int,
    generated_at: str,
) -> None:
    write_json(
        out_dir / "account.json",
        account_summary_document(
            report, administration_id=administration_id, year=year, generated_at=generated_at
        ),
    )
    write_json(
        out_dir / f"monthly-{year}.json",
        monthly_series_document(report, year=year, generated_at=generated_at),
    )
    for selection, name in (
        ("latest-month", "spend-latest-month.json"),
        ("year-to-date", "spend-year-to-date.json"),
    ):
        write_json(
            out_dir / name,
            category_rollup_document(
                report.month_series,
                index,
                selection,
                generated_at=generated_at,
                currency=report.account.currency,
            ),
        )


def run_moneybird(
    settings: Settings,
    *,
    year: int | None = None,
    today: date | None = None,
    http: httpx.Client | None = None,
) -> RunResult:
    settings.require_moneybird()
    today = today or date.today()
    year = year or today.year
    administration_id = str(settings.moneybird_administration_id)
    root = settings.output_dir / "moneybird"
    generated_at = utc_now_iso()
    result = RunResult(source="moneybird")

    owned = http is None
    http = http or build_client(settings.http_timeout)
    try:
        client = MoneybirdClient(
            token=str(settings.moneybird_token),
            administration_id=administration_id,
            client=http,
        )
        accounts = client.financial_accounts()
        records = category_records_from_payload(client.ledger_accounts())
        index = build_category_index(records)
        write_json(
            root / "ledger_accounts.json",
            ledger_accounts_document(
                records, administration_id=administration_id, generated_at=generated_at
            ),
        )

        by_id = {str(a.get("id")): a for a in accounts if isinstance(a, Mapping)}
        for label, account_id in settings.moneybird_accounts.items():
            try:
                row = by_id.get(str(account_id))
                if row is None:
                    raise LookupError(f"Financial account not found: {account_id}")
                report = build_account_report(
                    client, row, year=year, today=today, concurrency=settings.max_workers
                )
                _publish_account(
                    report,
                    index,
                    root / label,
                    administration_id=administration_id,
                    year=year,
                    generated_at=generated_at,
                )
                result.results[label] = None
            except _UNIT_ERRORS as exc:
                _logger.error("Moneybird export for %s failed: %s", label, exc)
                result.results[label] = exc
    finally:
        if owned:
            http.close()

    write_json(
        root / "meta.json",
        MoneybirdMetaDocument(
            generated_at=generated_at,
            administration_id=administration_id,
            year=str(year),
            accounts=dict(settings.moneybird_accounts),
        ),
    )
    write_json(
        root / "status.json",
        status_document("moneybird", result.results, generated_at=generated_at),
    )
    return result


# ---------------------------------------------------------------------------
# On-chain
# ---------------------------------------------------------------------------


def snapshot_chain(
    chain: ChainConfig,
    settings: Settings,
    http: httpx.Client,
    *,
    generated_at: str,
) -> TreasurySnapshotDocument:
    """Balances plus recent token transfers of the treasury on one chain."""

    address = settings.treasury_address
    token = chain.token
    limit = settings.transfer_limit
    rpc = JsonRpcClient(settings.rpc_urls[chain.name], source=f"{chain.name}-rpc", client=http)

    wei = rpc.get_balance(address)
    decimals = rpc.erc20_decimals(token.contract)
    token_balance = rpc.erc20_balance(token.contract, address)

    normalize = {
        "reference_address": address,
        "decimals": decimals,
        "explorer_base_url": chain.explorer_base_url,
    }
    if chain.transfer_source == "etherscan":
        etherscan = EtherscanClient(api_key=str(settings.etherscan_api_key), client=http)
        rows = etherscan.token_transfers(
            chain_id=chain.chain_id, address=address, contract=token.contract, offset=limit
        )
        lists = [normalize_rows(rows, raw_from_etherscan, **normalize)]
    elif chain.transfer_source == "alchemy":
        # Outgoing and incoming are separate queries; self-transfers appear in both.
        queries = [{"from_address": address}, {"to_address": address}]
        batches = fan_out(
            queries,
            lambda q: rpc.asset_transfers(
                contract_addresses=[token.contract], max_count=limit, **q
            ),
            concurrency=2,
        )
        lists = [normalize_rows(b, raw_from_alchemy, **normalize) for b in batches]
    else:
        raise ValueError(f"unknown transfer source: {chain.transfer_source!r}")

    recent = merge_and_dedup(lists, limit)
    _logger.info("%s: %d recent %s transfers", chain.name, len(recent), token.symbol)

    return TreasurySnapshotDocument(
        chain=chain.name,
        chain_id=chain.chain_id,
        treasury_address=address,
        generated_at=generated_at,
        native=NativeBalance(
            symbol="ETH",
            decimals=18,
            balance_wei=str(wei),
            balance_formatted=format_units(wei, 18),
            explorer_address_url=f"{chain.explorer_base_url}/address/{address}",
        ),
        tokens={
            token.symbol: TokenBalance(
                symbol=token.symbol,
                contract=token.contract,
                decimals=decimals,
                balance_raw=str(token_balance),
                balance_formatted=format_units(token_balance, decimals),
                explorer_token_url=f"{chain.explorer_base_url}/token/{token.contract}",
            )
        },
        recent_transfers={token.symbol: [t.to_document() for t in recent]},
        sources={"rpc": chain.rpc_env, "explorer": chain.explorer_base_url},
    )


def run_onchain(settings: Settings, *, http: httpx.Client | None = None) -> RunResult:
    settings.require_onchain()
    generated_at = utc_now_iso()
    root = settings.output_dir
    result = RunResult(source="onchain")

    owned = http is None
    http = http or build_client(settings.http_timeout)
    try:
        for chain in CHAINS:
            try:
                doc = snapshot_chain(chain, settings, http, generated_at=generated_at)
                write_json(root / chain.name / "treasury.json", doc)
                result.results[chain.name] = None
            except UpstreamFetchError as exc:
                _logger.error("On-chain snapshot for %s failed: %s", chain.name, exc)
                result.results[chain.name] = exc
    finally:
        if owned:
            http.close()

    write_json(
        root / "meta.json",
        OnchainMetaDocument(
            generated_at=generated_at,
            address=settings.treasury_address,
            assets={c.name: ["ETH", c.token.symbol] for c in CHAINS},
        ),
    )
    write_json(
        root / "status.json", status_document("onchain", result.results, generated_at=generated_at)
    )
    return result


__all__ = [
    "RunResult",
    "build_account_report",
    "run_moneybird",
    "snapshot_chain",
    "run_onchain",
]
