"""Adapter for ZKB One (Visa) PDF statements.

Columns (cut at x = 132, 400, 480, 520):

``0: "dd.mm.yy dd.mm.yy" (purchase and booking date) | 1: description |
2: currency/foreign amount | 3: rate | 4: amount CHF``

Only rows whose first cell holds the date pair are transactions; headers,
subtotals and page footers are skipped. Charges are printed without sign and
credits with a trailing minus (``"12.50-"``), so the sign is −1 unless cell 4
contains ``-``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Sequence
from os import PathLike

from ...errors import ParseError
from ...models import RawTransaction
from ..extract import TableExtractor
from ..utils import cell, parse_float, strip_thousands, to_cents, to_iso_date

COLUMN_BOUNDARIES: tuple[float, ...] = (132, 400, 480, 520)
DATE_PAIR_RE = re.compile(r"\b\d{2}\.\d{2}\.\d{2} \d{2}\.\d{2}\.\d{2}\b")


def to_records(
    grid: Iterable[Sequence[str]], *, source: str | PathLike[str] | None = None
) -> Iterator[RawTransaction]:
    for row in grid:
        match = DATE_PAIR_RE.search(cell(row, 0))
        if match is None:
            continue
        raw_amount = cell(row, 4)
        sign = 1 if "-" in raw_amount else -1
        amount = parse_float(strip_thousands(raw_amount))
        if amount is None:
            raise ParseError(f"invalid amount {raw_amount!r}", source=source)
        yield RawTransaction(
            date=to_iso_date(match.group(0).split(" ")[0], "%d.%m.%y", source=source),
            payee_name=cell(row, 1).strip() or "Unknown",
            amount=to_cents(sign * amount),
        )


async def parse_zkb_one(
    path: str | PathLike[str], *, extractor: TableExtractor
) -> list[RawTransaction]:
    if not str(path).endswith(".pdf"):
        return []
    grid = await extractor.extract_table(
        path, pages="all", column_boundaries=COLUMN_BOUNDARIES
    )
    return list(to_records(grid, source=path))


__all__ = ["COLUMN_BOUNDARIES", "DATE_PAIR_RE", "to_records", "parse_zkb_one"]
