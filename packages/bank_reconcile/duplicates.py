"""Duplicate collapsing for parsed statement records.

Statement folders routinely hold overlapping exports (e.g. a monthly file and
a quarterly file covering the same weeks), so the same booking is parsed more
than once. Records are collapsed on a natural key built from
``(date, amount, payee_name, notes)``; fields that are ``None`` are left out
of the key rather than hashed as a placeholder.
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import RawTransaction

KEY_FIELDS: tuple[str, ...] = ("date", "amount", "payee_name", "notes")
KEY_SEPARATOR = "|"


def dedupe_key(record: RawTransaction) -> str:
    parts = (getattr(record, name) for name in KEY_FIELDS)
    return KEY_SEPARATOR.join(str(v) for v in parts if v is not None)


def dedupe(records: Iterable[RawTransaction]) -> list[RawTransaction]:
    """Collapse records sharing a key.

    Each key keeps the position of its first occurrence and the field values
    of its last one.
    """

    by_key: dict[str, RawTransaction] = {}
    for record in records:
        # dict assignment keeps insertion position for existing keys
        by_key[dedupe_key(record)] = record
    return list(by_key.values())


__all__ = ["KEY_FIELDS", "dedupe_key", "dedupe"]
