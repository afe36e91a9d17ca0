"""Adapter for Cembra Money Bank credit-card PDF statements.

Columns (cut at x = 129, 201, 408, 480):

``0: purchase date | 1: booking date (dd.mm.yyyy) | 2: description |
3: credit | 4: debit``

A row is a transaction when cell 1 holds a date and at least one of the
amount cells is filled. Amount is the credit, else the negated debit.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Sequence
from os import PathLike

from ...errors import ParseError
from ...models import RawTransaction
from ..extract import TableExtractor
from ..utils import cell, first_nonzero, parse_float, strip_thousands, to_cents, to_iso_date

COLUMN_BOUNDARIES: tuple[float, ...] = (129, 201, 408, 480)
DATE_RE = re.compile(r"\d{2}\.\d{2}\.\d{4}")


def to_records(
    grid: Iterable[Sequence[str]], *, source: str | PathLike[str] | None = None
) -> Iterator[RawTransaction]:
    for row in grid:
        match = DATE_RE.search(cell(row, 1))
        if match is None:
            continue
        credit_raw, debit_raw = cell(row, 3), cell(row, 4)
        if credit_raw == "" and debit_raw == "":
            continue
        debit = parse_float(strip_thousands(debit_raw))
        amount = first_nonzero(
            parse_float(strip_thousands(credit_raw)),
            -debit if debit is not None else None,
        )
        if amount is None:
            raise ParseError(f"invalid amount in row {list(row)!r}", source=source)
        yield RawTransaction(
            date=to_iso_date(match.group(0), "%d.%m.%Y", source=source),
            payee_name=cell(row, 2).strip() or "Unknown",
            amount=to_cents(amount),
        )


async def parse_cembra(
    path: str | PathLike[str], *, extractor: TableExtractor
) -> list[RawTransaction]:
    if not str(path).endswith(".pdf"):
        return []
    grid = await extractor.extract_table(
        path, pages="all", column_boundaries=COLUMN_BOUNDARIES
    )
    return list(to_records(grid, source=path))


__all__ = ["COLUMN_BOUNDARIES", "DATE_RE", "to_records", "parse_cembra"]
