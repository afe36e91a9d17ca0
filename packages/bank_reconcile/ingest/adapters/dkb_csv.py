"""Adapter for DKB giro account CSV exports.

The export starts with four preamble lines (account, period, balance) before
the ``;``-separated header. Columns used:

``Wertstellung, Umsatztyp, Zahlungspflichtige*r, Zahlungsempfänger*in,
Verwendungszweck, Betrag (€)``

Mapping rules:
- ``date``: ``Wertstellung`` (``dd.mm.yy``)
- ``payee_name``: ``Zahlungspflichtige*r`` for incoming rows
  (``Umsatztyp == "Eingang"``), otherwise ``Zahlungsempfänger*in``
- ``amount``: ``Betrag (€)`` as signed cents (German decimal comma accepted)
- ``notes``: ``Verwendungszweck``
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from os import PathLike

from ...errors import ParseError
from ...models import RawTransaction
from ..utils import dict_rows, parse_decimal_comma, read_text, slice_lines, to_cents, to_iso_date

PREAMBLE_LINES = 4
REQUIRED_COLUMNS = {
    "Wertstellung",
    "Umsatztyp",
    "Zahlungspflichtige*r",
    "Zahlungsempfänger*in",
    "Verwendungszweck",
    "Betrag (€)",
}


def to_records(
    rows: Iterable[Mapping[str, str]], *, source: str | PathLike[str] | None = None
) -> Iterator[RawTransaction]:
    for row in rows:
        if row.get("Umsatztyp", "").strip() == "Eingang":
            payee = row.get("Zahlungspflichtige*r", "")
        else:
            payee = row.get("Zahlungsempfänger*in", "")
        amount = parse_decimal_comma(row.get("Betrag (€)"))
        if amount is None:
            raise ParseError(f"missing amount in row {dict(row)!r}", source=source)
        yield RawTransaction(
            date=to_iso_date(row.get("Wertstellung"), "%d.%m.%y", source=source),
            payee_name=payee.strip() or "Unknown",
            amount=to_cents(amount),
            notes=row.get("Verwendungszweck"),
        )


def parse_dkb(path: str | PathLike[str]) -> list[RawTransaction]:
    text = slice_lines(read_text(path), head=PREAMBLE_LINES)
    rows = dict_rows(text, delimiter=";", required=REQUIRED_COLUMNS, source=path)
    return list(to_records(rows, source=path))


__all__ = ["parse_dkb", "to_records"]
