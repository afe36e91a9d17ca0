"""Month-granularity date-range filters for ``--month``.

Accepted specs:

- ``None``: every record passes.
- ``"2021-01"``: records dated within January 2021.
- ``"2021-01,2021-03"``: January through March 2021 (both ends inclusive).
- ``"2021-01,"`` / ``",2021-03"``: open-ended on the empty side.

Each month may also be given as a full ``YYYY-MM-DD`` date; only its month
counts. Intervals are half-open on calendar dates: ``[first day of start
month, first day of the month after end)``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from .errors import InvalidFilterError
from .models import RawTransaction

type RecordPredicate = Callable[[RawTransaction], bool]


@dataclass(frozen=True, slots=True)
class MonthRange:
    """Half-open date interval; ``None`` bounds are unbounded."""

    start: date | None
    end: date | None

    def __contains__(self, day: date) -> bool:
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day >= self.end:
            return False
        return True


def month_floor(spec: str) -> date:
    s = spec.strip()
    try:
        if len(s) == 7:
            parsed = date.fromisoformat(f"{s}-01")
        else:
            parsed = date.fromisoformat(s)
    except ValueError as exc:
        raise InvalidFilterError(f"Invalid month filter: {spec!r}") from exc
    return parsed.replace(day=1)


def month_ceil(spec: str) -> date:
    first = month_floor(spec)
    if first.month == 12:
        return date(first.year + 1, 1, 1)
    return date(first.year, first.month + 1, 1)


def parse_month_range(month: str) -> MonthRange:
    if "," not in month:
        return MonthRange(month_floor(month), month_ceil(month))
    start, end = (part.strip() for part in month.split(",", 1))
    if not start and not end:
        raise InvalidFilterError("Invalid month filter: both bounds are empty")
    return MonthRange(
        month_floor(start) if start else None,
        month_ceil(end) if end else None,
    )


def month_filter(month: str | None = None) -> RecordPredicate:
    """Return a predicate accepting records whose date falls in ``month``."""

    if month is None:
        return lambda record: True
    window = parse_month_range(month)
    return lambda record: date.fromisoformat(record.date) in window


__all__ = ["MonthRange", "month_floor", "month_ceil", "parse_month_range", "month_filter"]
