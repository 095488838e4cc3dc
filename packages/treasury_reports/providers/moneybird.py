"""Moneybird API v2 client (financial accounts, ledger accounts, cash flow).

Endpoints used
--------------
- ``GET /financial_accounts.json``
- ``GET /ledger_accounts.json``
- ``GET /reports/cash_flow.json?period=...&financial_account_id=...``
- ``GET /financial_mutations/synchronization.json?filter=...`` (the number of
  returned id/version pairs is the period's mutation count)
"""

from __future__ import annotations

from typing import Any

import httpx

from ..errors import UpstreamFetchError
from ..models import CashFlowReport
from .http import build_client, request_json

MONEYBIRD_API_BASE = "https://moneybird.com/api/v2"
_SOURCE = "moneybird"


class MoneybirdClient:
    def __init__(
        self,
        *,
        token: str,
        administration_id: str,
        client: httpx.Client | None = None,
        timeout: float = 20.0,
        base_url: str = MONEYBIRD_API_BASE,
    ) -> None:
        self.administration_id = str(administration_id)
        self._base = f"{base_url.rstrip('/')}/{self.administration_id}"
        self._token = token
        self._client = client or build_client(timeout)

    def _get(self, path: str, *, what: str, params: dict[str, str] | None = None) -> Any:
        return request_json(
            self._client,
            "GET",
            f"{self._base}{path}",
            source=_SOURCE,
            what=what,
            params=params,
            headers={"authorization": f"Bearer {self._token}"},
        )

    def _get_list(self, path: str, *, what: str, params: dict[str, str] | None = None) -> list:
        data = self._get(path, what=what, params=params)
        if not isinstance(data, list):
            raise UpstreamFetchError(_SOURCE, f"{what} returned {type(data).__name__}, not a list")
        return data

    def financial_accounts(self) -> list[dict[str, Any]]:
        return self._get_list("/financial_accounts.json", what="financial accounts")

    def ledger_accounts(self) -> list[dict[str, Any]]:
        return self._get_list("/ledger_accounts.json", what="ledger accounts")

    def cash_flow(self, financial_account_id: str, period: str) -> CashFlowReport:
        data = self._get(
            "/reports/cash_flow.json",
            what=f"cash flow {period}",
            params={"period": period, "financial_account_id": str(financial_account_id)},
        )
        if not isinstance(data, dict):
            raise UpstreamFetchError(_SOURCE, f"cash flow {period} returned a non-object")
        return CashFlowReport.model_validate(data)

    def mutation_count(self, financial_account_id: str, period: str) -> int:
        data = self._get(
            "/financial_mutations/synchronization.json",
            what=f"mutation count {period}",
            params={
                "filter": f"period:{period},state:all,financial_account_id:{financial_account_id}"
            },
        )
        return len(data) if isinstance(data, list) else 0


__all__ = ["MONEYBIRD_API_BASE", "MoneybirdClient"]
