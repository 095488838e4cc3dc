"""Write published JSON documents under the output root.

Writes target a ``.tmp`` sibling first and are moved into place with
``os.replace`` so a reader never sees a half-written document.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from .logging_setup import get_logger
from .models import Document
from .transfers import iso_utc

_logger = get_logger("treasury_reports.publish")


def utc_now_iso() -> str:
    """Generation timestamp in the same ``...mmmZ`` form used for transfers."""

    return iso_utc(datetime.now(UTC))


def write_json(path: Path, obj: Document | Mapping[str, Any] | list[Any]) -> Path:
    payload = obj.to_json_obj() if isinstance(obj, Document) else obj
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
        f.write("\n")
    os.replace(tmp, path)
    _logger.info("Wrote %s", path)
    return path


def read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


__all__ = ["utc_now_iso", "write_json", "read_json"]
