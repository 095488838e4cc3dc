"""Typer CLI for ``treasury_reports``.

The root callback loads ``.env`` from the working directory (without
overriding variables that are already set) and configures logging; commands
then build :class:`~treasury_reports.config.Settings` and delegate to
``treasury_reports.pipeline``.

Exit status is ``1`` when configuration is missing, a shared listing could not
be fetched, or any account/chain failed (its error is in ``status.json``).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from .config import Settings, load_settings
from .errors import ConfigError, UpstreamFetchError
from .ledger import build_category_index, category_records_from_payload
from .logging_setup import configure_logging
from .models import MonthlySnapshot
from .pipeline import RunResult, run_moneybird, run_onchain
from .publish import read_json, utc_now_iso
from .reports import category_rollup_document

app = typer.Typer(
    name="treasury-reports",
    help="Fetch treasury and bookkeeping data and publish static JSON reports.",
    no_args_is_help=True,
    add_completion=False,
)

OUTPUT_DIR_OPTION = typer.Option(
    "--output-dir",
    help="Output root (defaults to TREASURY_REPORTS_OUTPUT_DIR or ./data).",
    file_okay=False,
)


def _settings(output_dir: Path | None) -> Settings:
    try:
        return load_settings(output_dir=output_dir)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e


def _report(result: RunResult) -> int:
    for label, exc in result.results.items():
        status = "ok" if exc is None else f"FAILED ({exc})"
        typer.echo(f"{result.source}/{label}: {status}")
    return 0 if result.ok else 1


def _run(fn, settings: Settings, **kwargs) -> int:
    try:
        return _report(fn(settings, **kwargs))
    except (ConfigError, UpstreamFetchError) as e:
        typer.echo(f"Error: {e}", err=True)
        return 1


@app.command("moneybird")
def moneybird_cmd(
    year: Annotated[int | None, typer.Option(help="Report year (default: current year).")] = None,
    output_dir: Annotated[Path | None, OUTPUT_DIR_OPTION] = None,
) -> None:
    """Export account summaries, monthly series and category rollups."""

    code = _run(run_moneybird, _settings(output_dir), year=year)
    raise typer.Exit(code)


@app.command("onchain")
def onchain_cmd(output_dir: Annotated[Path | None, OUTPUT_DIR_OPTION] = None) -> None:
    """Export treasury balances and recent token transfers per chain."""

    code = _run(run_onchain, _settings(output_dir))
    raise typer.Exit(code)


@app.command("all")
def all_cmd(
    year: Annotated[int | None, typer.Option(help="Report year (default: current year).")] = None,
    output_dir: Annotated[Path | None, OUTPUT_DIR_OPTION] = None,
) -> None:
    """Run the Moneybird export, then the on-chain export."""

    settings = _settings(output_dir)
    codes = [_run(run_moneybird, settings, year=year), _run(run_onchain, settings)]
    raise typer.Exit(max(codes))


@app.command("rollup")
def rollup_cmd(
    monthly: Annotated[Path, typer.Option(help="Published monthly-<year>.json document.")],
    ledger: Annotated[Path, typer.Option(help="Published ledger_accounts.json document.")],
    selection: Annotated[
        str, typer.Option(help="latest-month or year-to-date.")
    ] = "year-to-date",
    limit: Annotated[int | None, typer.Option(min=1, help="Keep the top N groups.")] = None,
) -> None:
    """Recompute a category rollup offline from published documents."""

    if selection not in ("latest-month", "year-to-date"):
        typer.echo(f"Error: unknown selection {selection!r}", err=True)
        raise typer.Exit(1)
    try:
        monthly_doc = read_json(monthly)
        ledger_doc = read_json(ledger)
    except (OSError, json.JSONDecodeError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    snapshots = [MonthlySnapshot.model_validate(m) for m in monthly_doc.get("months", [])]
    records = category_records_from_payload(ledger_doc.get("ledgerAccounts", []))
    index = build_category_index(records)
    doc = category_rollup_document(
        snapshots, index, selection, generated_at=utc_now_iso(), limit=limit  # type: ignore[arg-type]
    )
    typer.echo(json.dumps(doc.to_json_obj(), indent=2))


@app.callback()
def _root(
    log_level: Annotated[
        str | None, typer.Option(help="Log level (default: TREASURY_REPORTS_LOG_LEVEL or INFO).")
    ] = None,
) -> None:
    """Load ``.env`` and configure logging before any command runs."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)


def main() -> None:  # pragma: no cover - console script entry
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
