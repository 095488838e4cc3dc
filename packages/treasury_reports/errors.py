"""Exception types raised by ``treasury_reports``.

Only fetch and configuration failures are fatal (for the affected account or
chain). Data-quality problems in provider records are absorbed by tolerant
defaults in the engine and never surface as exceptions unless a strict amount
policy is requested explicitly.
"""

from __future__ import annotations


class TreasuryReportsError(Exception):
    """Base class for package errors."""


class ConfigError(TreasuryReportsError, RuntimeError):
    """A required setting is missing or invalid."""


class UpstreamFetchError(TreasuryReportsError):
    """A provider request failed (transport, HTTP status, or error payload)."""

    def __init__(self, source: str, message: str, *, status_code: int | None = None) -> None:
        self.source = source
        self.status_code = status_code
        super().__init__(f"{source}: {message}")


class MalformedAmountError(TreasuryReportsError, ValueError):
    """An amount string could not be parsed under the strict policy."""


__all__ = [
    "TreasuryReportsError",
    "ConfigError",
    "UpstreamFetchError",
    "MalformedAmountError",
]
