"""Adapter for Interactive Brokers activity statements (CSV download).

The statement concatenates many sections with different column layouts, so
there is no single header to read. Only deposit/withdrawal lines are
relevant; they contain the marker ``Electronic Fund Transfer`` and are split
naively on ``,``:

- ``date``: field 3 (``YYYY-MM-DD``; ``YYYYMMDD`` is accepted too)
- ``payee_name``: field 4
- ``amount``: field 5, in the account's base currency
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from os import PathLike

from ...errors import ParseError
from ...models import RawTransaction
from ..utils import parse_float, read_text, to_cents, to_iso_date

MARKER = "Electronic Fund Transfer"
_DATE_FIELD, _PAYEE_FIELD, _AMOUNT_FIELD = 3, 4, 5


def _iso(raw: str, *, source: str | PathLike[str] | None) -> str:
    s = raw.strip()
    fmt = "%Y%m%d" if s.isdigit() else "%Y-%m-%d"
    return to_iso_date(s, fmt, source=source)


def to_records(
    lines: Iterable[str], *, source: str | PathLike[str] | None = None
) -> Iterator[RawTransaction]:
    for line in lines:
        if MARKER not in line:
            continue
        fields = line.rstrip("\r").split(",")
        if len(fields) <= _AMOUNT_FIELD:
            raise ParseError(f"transfer line has too few fields: {line!r}", source=source)
        amount = parse_float(fields[_AMOUNT_FIELD])
        if amount is None:
            raise ParseError(f"invalid amount in line {line!r}", source=source)
        yield RawTransaction(
            date=_iso(fields[_DATE_FIELD], source=source),
            payee_name=fields[_PAYEE_FIELD].strip() or MARKER,
            amount=to_cents(amount),
        )


def parse_interactive_brokers(path: str | PathLike[str]) -> list[RawTransaction]:
    return list(to_records(read_text(path).split("\n"), source=path))


__all__ = ["MARKER", "to_records", "parse_interactive_brokers"]
