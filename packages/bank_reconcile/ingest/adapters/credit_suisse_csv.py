"""Adapters for Credit Suisse account and credit-card CSV exports.

Account export (``parse_credit_suisse``)
----------------------------------------
Five preamble lines precede the ``,``-separated header and a summary line
trails the data. Columns used: ``Booking Date, Text, Credit, Debit``.

- ``date``: ``Booking Date`` (``dd.mm.yyyy``)
- ``amount``: ``Credit``, else −``Debit``
- ``notes``: the full ``Text``
- ``payee_name``: selected from the comma-joined ``Text`` by its leading
  token, see :data:`PAYEE_RULES`

Credit-card export (``parse_credit_suisse_credit``)
---------------------------------------------------
Plain ``,``-separated CSV. Columns used:
``Transaction date, Description, Amount, Category``. Card amounts are
reported as positive charges and are negated.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from os import PathLike

from ...errors import ParseError
from ...models import RawTransaction
from ..utils import (
    dict_rows,
    first_nonzero,
    parse_float,
    read_text,
    slice_lines,
    to_cents,
    to_iso_date,
)

PREAMBLE_LINES = 5
SUMMARY_LINES = 1
REQUIRED_COLUMNS = {"Booking Date", "Text", "Credit", "Debit"}
CREDIT_REQUIRED_COLUMNS = {"Transaction date", "Description", "Amount", "Category"}

# ---------------------------------------------------------------------------
# Payee selection from the composite ``Text`` column
# ---------------------------------------------------------------------------

type Segments = Sequence[str]
type PayeeRule = tuple[Callable[[Segments], bool], Callable[[Segments], str]]

_SECOND_SEGMENT_TOKENS = frozenset(
    {
        "Payment QR-bill ",
        "Direct debit collection ",
        "Clearing payment ",
        "Payment order ",
        "Payment domestic - ISR ",
        "Internal Book Transfer ",
    }
)
_TWINT_TOKENS = frozenset({"TWINT Payment ", "TWINT Credit "})


def _segment(segments: Segments, index: int) -> str:
    # Short texts fall back to the leading token
    if index < len(segments) and segments[index]:
        return segments[index]
    return segments[0]


def _twint_payee(segments: Segments) -> str:
    if len(segments) > 2 and segments[2].startswith("vom"):
        return _segment(segments, 1)
    return ", ".join(s for s in segments[1:3] if s) or segments[0]


def _is_plain(segments: Segments) -> bool:
    return (
        len(segments) == 1
        or "withdrawal" in segments[0]
        or segments[0] == "Balance of closing entries "
    )


# Evaluated top-down; the first matching predicate selects the payee.
PAYEE_RULES: tuple[PayeeRule, ...] = (
    (lambda s: s[0] in _SECOND_SEGMENT_TOKENS, lambda s: _segment(s, 1)),
    (lambda s: s[0] in _TWINT_TOKENS, _twint_payee),
    (_is_plain, lambda s: s[0]),
    (lambda s: s[0] == "Debit card point of sale payment CHF ", lambda s: _segment(s, 2)),
    (lambda s: s[0] == "SEPA payment outgoing ", lambda s: _segment(s, 4)),
)


def split_text(text: str) -> list[str]:
    """Split ``Text`` on commas; the leading token keeps its trailing space."""

    head, *rest = text.split(",")
    return [head, *(part.strip() for part in rest)]


def select_payee(text: str) -> str:
    segments = split_text(text)
    for matches, select in PAYEE_RULES:
        if matches(segments):
            return select(segments).strip()
    return segments[0].strip()


# ---------------------------------------------------------------------------
# Row mapping
# ---------------------------------------------------------------------------


def to_records(
    rows: Iterable[Mapping[str, str]], *, source: str | PathLike[str] | None = None
) -> Iterator[RawTransaction]:
    for row in rows:
        text = row.get("Text", "")
        debit = parse_float(row.get("Debit"))
        amount = first_nonzero(parse_float(row.get("Credit")), -debit if debit is not None else None)
        if amount is None:
            raise ParseError(f"no amount in row {text!r}", source=source)
        yield RawTransaction(
            date=to_iso_date(row.get("Booking Date"), "%d.%m.%Y", source=source),
            payee_name=select_payee(text) or "Unknown",
            amount=to_cents(amount),
            notes=text,
        )


def credit_to_records(
    rows: Iterable[Mapping[str, str]], *, source: str | PathLike[str] | None = None
) -> Iterator[RawTransaction]:
    for row in rows:
        amount = parse_float(row.get("Amount"))
        if amount is None:
            raise ParseError(f"no amount in row {dict(row)!r}", source=source)
        yield RawTransaction(
            date=to_iso_date(row.get("Transaction date"), "%d.%m.%Y", source=source),
            payee_name=row.get("Description", "").strip() or "Unknown",
            amount=-to_cents(amount),
            notes=row.get("Category") or None,
        )


def parse_credit_suisse(path: str | PathLike[str]) -> list[RawTransaction]:
    text = slice_lines(read_text(path), head=PREAMBLE_LINES, tail=SUMMARY_LINES)
    rows = dict_rows(text, delimiter=",", required=REQUIRED_COLUMNS, source=path)
    return list(to_records(rows, source=path))


def parse_credit_suisse_credit(path: str | PathLike[str]) -> list[RawTransaction]:
    rows = dict_rows(
        read_text(path), delimiter=",", required=CREDIT_REQUIRED_COLUMNS, source=path
    )
    return list(credit_to_records(rows, source=path))


__all__ = [
    "PAYEE_RULES",
    "split_text",
    "select_payee",
    "to_records",
    "credit_to_records",
    "parse_credit_suisse",
    "parse_credit_suisse_credit",
]
