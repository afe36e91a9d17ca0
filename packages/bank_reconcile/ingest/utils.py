"""Helpers shared by the statement adapters.

Amount handling mirrors how the bank exports are meant to be read: a cell is
read as its leading numeric prefix (``"100.00 CHF"`` reads as ``100.0``, an
empty cell reads as "no value"), alternatives are tried in order until one is
non-zero, and the result is converted to integer cents with
``ROUND_HALF_UP`` so fractional cents round away from zero instead of being
truncated.
"""

from __future__ import annotations

import csv
import io
import re
from collections.abc import Iterable, Sequence
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from os import PathLike
from pathlib import Path

from ..errors import ParseError

_NUMERIC_PREFIX_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
TEXT_ENCODINGS: tuple[str, ...] = ("utf-8-sig", "cp1252")


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------


def parse_float(raw: str | None) -> float | None:
    """Read the leading numeric prefix of ``raw``; ``None`` when there is none."""

    if raw is None:
        return None
    m = _NUMERIC_PREFIX_RE.match(raw.strip())
    if m is None:
        return None
    return float(m.group(0))


def parse_decimal_comma(raw: str | None) -> float | None:
    """Read a German-formatted number (``"-1.234,56"``) as a float.

    Values without a decimal comma are read unchanged, so exports that already
    use a decimal point keep working.
    """

    if raw is None:
        return None
    s = raw.strip()
    if "," in s:
        s = s.replace(".", "").replace(",", ".")
    return parse_float(s)


def strip_thousands(raw: str | None) -> str:
    """Remove apostrophe thousands separators (``"1'234.50"`` -> ``"1234.50"``)."""

    return (raw or "").replace("'", "")


def first_nonzero(*candidates: float | None) -> float | None:
    """Return the first candidate that is neither missing nor zero.

    When every candidate is missing or zero the last one is returned, so a
    genuine ``0.00`` row still reads as zero.
    """

    for value in candidates:
        if value is not None and value != 0:
            return value
    return candidates[-1] if candidates else None


def to_cents(value: float) -> int:
    """Convert a major-unit amount to integer cents, rounding half away from zero."""

    cents = Decimal(repr(float(value))) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def to_iso_date(raw: str | None, fmt: str, *, source: str | PathLike[str] | None = None) -> str:
    """Parse ``raw`` with ``fmt`` and return ``YYYY-MM-DD``.

    The whole (trimmed) cell must match ``fmt``; anything else is a
    :class:`ParseError`.
    """

    s = (raw or "").strip()
    try:
        return datetime.strptime(s, fmt).date().isoformat()
    except ValueError as exc:
        raise ParseError(f"invalid date {raw!r} (expected {fmt})", source=source) from exc


# ---------------------------------------------------------------------------
# Files and delimited text
# ---------------------------------------------------------------------------


def read_text(path: str | PathLike[str]) -> str:
    """Decode a statement export as UTF-8, falling back to Windows-1252.

    ``utf-8-sig`` drops the BOM several banks prepend; older Swiss exports are
    written in cp1252. Bytes valid in neither raise :class:`ParseError`.
    """

    data = Path(path).read_bytes()
    for encoding in TEXT_ENCODINGS:
        try:
            text = data.decode(encoding)
        except UnicodeDecodeError:
            continue
        # Same newline handling as text-mode reads
        return text.replace("\r\n", "\n").replace("\r", "\n")
    raise ParseError(
        f"cannot decode file (tried {', '.join(TEXT_ENCODINGS)})", source=path
    )


def slice_lines(text: str, *, head: int = 0, tail: int = 0) -> str:
    """Drop ``head`` preamble lines and ``tail`` trailing lines from ``text``.

    Trailing blank lines do not count towards ``tail``.
    """

    lines = text.split("\n")
    if tail:
        while lines and not lines[-1].strip():
            lines.pop()
        lines = lines[: max(len(lines) - tail, 0)]
    return "\n".join(lines[head:])


def dict_rows(
    text: str,
    *,
    delimiter: str,
    required: Iterable[str],
    source: str | PathLike[str] | None = None,
) -> list[dict[str, str]]:
    """Parse delimited ``text`` with a header row into string-valued dicts.

    Raises :class:`ParseError` when the header is missing or lacks any of the
    ``required`` columns (typically the wrong delimiter or the wrong export).
    """

    reader = csv.DictReader(io.StringIO(text), delimiter=delimiter)
    headers = reader.fieldnames
    if not headers:
        raise ParseError("no header row found", source=source)
    headers = [h.strip() for h in headers]
    reader.fieldnames = headers
    missing = sorted(h for h in required if h not in headers)
    if missing:
        raise ParseError("header mismatch; missing columns: " + ", ".join(missing), source=source)

    rows: list[dict[str, str]] = []
    for row in reader:
        # DictReader collects surplus cells under a None key; drop them
        rows.append({k: (v if v is not None else "") for k, v in row.items() if k is not None})
    return rows


def cell(row: Sequence[str], index: int) -> str:
    """Return ``row[index]`` or ``""`` when the extracted row is shorter."""

    return row[index] if index < len(row) and row[index] is not None else ""


__all__ = [
    "parse_float",
    "parse_decimal_comma",
    "strip_thousands",
    "first_nonzero",
    "to_cents",
    "to_iso_date",
    "read_text",
    "slice_lines",
    "dict_rows",
    "cell",
]
