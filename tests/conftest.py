"""Pytest configuration for test isolation.

Settings are read from the environment, and the CLI additionally loads a
``.env`` from the working directory. Each test runs in its own temporary
working directory with every ``treasury_reports`` variable cleared so a
developer's local configuration never leaks into assertions.
"""

from __future__ import annotations

from pathlib import Path

import pytest

_ENV_VARS = (
    "MONEYBIRD_API_TOKEN",
    "MONEYBIRD_ADMINISTRATION_ID",
    "MONEYBIRD_FINANCIAL_ACCOUNT_ID",
    "ETH_RPC_URL",
    "BASE_RPC_URL",
    "ETHERSCAN_API_KEY",
    "TREASURY_ADDRESS",
    "TREASURY_REPORTS_OUTPUT_DIR",
    "TREASURY_REPORTS_HTTP_TIMEOUT",
    "TREASURY_REPORTS_MAX_WORKERS",
    "TREASURY_REPORTS_TRANSFER_LIMIT",
    "TREASURY_REPORTS_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    d = tmp_path / "out"
    d.mkdir()
    return d
