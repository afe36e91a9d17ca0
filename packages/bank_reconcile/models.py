"""Data models for ``bank_reconcile``.

``RawTransaction`` is the common shape every statement parser produces. It is
a frozen ``dataclass``: pipeline stages never mutate a record in place, they
derive new ones with :func:`dataclasses.replace`.

``Rule`` and ``AccountConfig`` describe what a budget config module declares.
They are Pydantic models because they validate user-supplied data (the config
module) and carry user callables (``filter``/``transform``).
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

# ---------------------------------------------------------------------------
# Parsed statement record
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RawTransaction:
    """A single normalized statement row.

    Attributes
    ----------
    date:
        Value/booking date as ``YYYY-MM-DD``.
    payee_name:
        Counterparty text; never empty.
    amount:
        Signed minor units (cents). Positive is an inflow.
    notes:
        Optional free text carried from the statement.
    account:
        Ledger account name. Set by the pipeline, never by a parser.
    category:
        Category name assigned by rules (or ``None`` when uncategorized).
    transfer:
        Name of the ledger account on the other side of a transfer. Set by an
        account ``transform`` in the budget config.
    """

    date: str
    payee_name: str
    amount: int
    notes: str | None = None
    account: str | None = None
    category: str | None = None
    transfer: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# Column order used for CSV/JSON output of parsed records
RECORD_FIELDS: tuple[str, ...] = (
    "date",
    "payee_name",
    "amount",
    "notes",
    "account",
    "category",
    "transfer",
)


def rule_text(record: RawTransaction | Mapping[str, Any]) -> str:
    """Return the text rules match against: ``payee_name | notes``."""

    if isinstance(record, RawTransaction):
        payee, notes = record.payee_name, record.notes
    else:
        payee, notes = record.get("payee_name"), record.get("notes")
    return f"{payee} | {notes or ''}"


# ---------------------------------------------------------------------------
# Budget config declarations
# ---------------------------------------------------------------------------


class Rule(BaseModel):
    """A category and (optionally) the predicate that assigns it.

    A rule without ``filter`` declares a category that exists in the ledger
    but is only ever assigned by hand.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    name: str
    group: str
    filter: Callable[[Any, str], bool] | None = None

    @field_validator("name", "group")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must be non-empty")
        return v


class AccountConfig(BaseModel):
    """A ledger account and, when ``folder`` is set, where its statements live."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    name: str
    type: str = "checking"
    folder: str | None = None
    parser: str | None = None
    offbudget: bool = False
    initial_balance: float | None = None
    filter: Callable[[RawTransaction], bool] | None = None
    transform: Callable[[RawTransaction], RawTransaction] | None = None

    @field_validator("name")
    @classmethod
    def _name_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("account name must be non-empty")
        return v


__all__ = [
    "RawTransaction",
    "RECORD_FIELDS",
    "rule_text",
    "Rule",
    "AccountConfig",
]
