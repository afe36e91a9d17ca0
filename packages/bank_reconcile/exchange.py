"""Reading and writing transaction files by extension.

- ``.csv``: header row plus one row per record; columns are the union of the
  record keys in first-seen order. ``None`` is written as an empty cell.
- anything else on write: a pretty-printed JSON array.
- on read, only ``.csv`` and ``.json`` are accepted.
"""

from __future__ import annotations

import csv
import json
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import asdict, is_dataclass
from os import PathLike
from pathlib import Path
from typing import Any

from .errors import ParseError
from .logging_setup import get_logger
from .models import RawTransaction

_logger = get_logger("bank_reconcile.exchange")

type Row = Mapping[str, Any]


def _as_row(item: RawTransaction | Row) -> dict[str, Any]:
    if is_dataclass(item):
        return asdict(item)
    return dict(item)


def _columns(rows: Sequence[Row]) -> list[str]:
    return list(dict.fromkeys(key for row in rows for key in row))


def write_records(path: str | PathLike[str], records: Iterable[RawTransaction | Row]) -> Path:
    """Write ``records`` to ``path`` (CSV for ``.csv``, JSON otherwise)."""

    target = Path(path)
    rows = [_as_row(r) for r in records]
    target.parent.mkdir(parents=True, exist_ok=True)
    if target.suffix.lower() == ".csv":
        with target.open("w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=_columns(rows))
            writer.writeheader()
            writer.writerows(rows)
    else:
        target.write_text(json.dumps(rows, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    _logger.info("Wrote %d records to %s", len(rows), target)
    return target


def read_records(path: str | PathLike[str]) -> list[dict[str, Any]]:
    """Read rows from a ``.csv`` or ``.json`` file.

    CSV cells come back as strings, with empty cells as ``None``.
    """

    source = Path(path)
    suffix = source.suffix.lower()
    _logger.info("Reading from %s with extension %s", source, suffix)
    if suffix == ".csv":
        with source.open("r", encoding="utf-8-sig", newline="") as f:
            return [{k: (v if v != "" else None) for k, v in row.items()} for row in csv.DictReader(f)]
    if suffix == ".json":
        try:
            data = json.loads(source.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ParseError(f"invalid JSON: {exc}", source=source) from exc
        if not isinstance(data, list) or not all(isinstance(d, dict) for d in data):
            raise ParseError("expected a JSON array of objects", source=source)
        return data
    raise ParseError("Invalid file format (expected .csv or .json)", source=source)


__all__ = ["write_records", "read_records"]
