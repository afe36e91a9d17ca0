"""Adapter for Zürcher Kantonalbank (ZKB) account CSV exports.

``;``-separated with a header row. Columns used:

``Value date, Booking text, Payment purpose, Details, Amount details,
Credit CHF, Debit CHF``

A booking with several sub-payments (e.g. a collective eBill order) is
exported as one row carrying the value date and the total, followed by rows
with an empty ``Value date`` that only fill ``Amount details``. Rows are
therefore read in order with a small carry-forward state: a non-empty
``Value date`` resets the current date and the sign (credit when
``Credit CHF`` is filled, debit otherwise); empty-date rows reuse both.

Banners for mobile top-ups and standing orders are not transactions and are
dropped. They still update the carry-forward state when they carry a date.

Amount resolution, first non-zero wins:
``Amount details`` × sign, then ``Credit CHF``, then −``Debit CHF``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from os import PathLike
from typing import NamedTuple

from ...errors import ParseError
from ...models import RawTransaction
from ..utils import dict_rows, first_nonzero, parse_float, read_text, to_cents, to_iso_date

REQUIRED_COLUMNS = {
    "Value date",
    "Booking text",
    "Payment purpose",
    "Details",
    "Amount details",
    "Credit CHF",
    "Debit CHF",
}

NOISE_PREFIXES: tuple[str, ...] = (
    "Debit eBanking Mobile (",
    "Credit eBanking Mobile (",
    "Debit Standing order (",
)


class CarryState(NamedTuple):
    """Last seen value date and sign while scanning rows."""

    date: str | None = None
    sign: int = 1


def is_noise(booking_text: str) -> bool:
    return booking_text.startswith(NOISE_PREFIXES)


def step(
    state: CarryState,
    row: Mapping[str, str],
    *,
    source: str | PathLike[str] | None = None,
) -> tuple[CarryState, RawTransaction | None]:
    """Consume one row; return the next state and the record (or ``None``)."""

    value_date = row.get("Value date", "")
    if value_date != "":
        state = CarryState(
            date=to_iso_date(value_date, "%d.%m.%Y", source=source),
            sign=1 if row.get("Credit CHF", "") != "" else -1,
        )

    booking_text = row.get("Booking text", "")
    if is_noise(booking_text):
        return state, None

    if state.date is None:
        raise ParseError("row without value date before any dated row", source=source)

    details = parse_float(row.get("Amount details"))
    debit = parse_float(row.get("Debit CHF"))
    amount = first_nonzero(
        details * state.sign if details is not None else None,
        parse_float(row.get("Credit CHF")),
        -debit if debit is not None else None,
    )
    if amount is None:
        raise ParseError(f"no amount in row {booking_text!r}", source=source)

    record = RawTransaction(
        date=state.date,
        payee_name=booking_text.strip() or "Unknown",
        amount=to_cents(amount),
        notes=f"{row.get('Payment purpose', '')} {row.get('Details', '')}",
    )
    return state, record


def to_records(
    rows: Iterable[Mapping[str, str]], *, source: str | PathLike[str] | None = None
) -> list[RawTransaction]:
    state = CarryState()
    out: list[RawTransaction] = []
    for row in rows:
        state, record = step(state, row, source=source)
        if record is not None:
            out.append(record)
    return out


def parse_zkb(path: str | PathLike[str]) -> list[RawTransaction]:
    rows = dict_rows(read_text(path), delimiter=";", required=REQUIRED_COLUMNS, source=path)
    return to_records(rows, source=path)


__all__ = ["CarryState", "NOISE_PREFIXES", "is_noise", "step", "to_records", "parse_zkb"]
