"""Re-categorization of transactions already in the ledger.

Two sources of truth:

- the config's rules (:func:`categorize_by_rules`): every non-transfer,
  non-split transaction is run through the rules; transactions whose category
  would change are listed;
- a reference export (:func:`categorize_from_file`): uncategorized ledger
  transactions are looked up by ``date | payee_name | notes`` in a CSV/JSON
  file, and only categories that exist in the ledger are applied.

In both cases the changes are shown as a table and applied only after the
user confirms.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from os import PathLike
from typing import Any

from rich.console import Console

from ..categorization import auto_rules, match_rule
from ..exchange import read_records
from ..ledger import LedgerSession
from ..logging_setup import get_logger
from ..models import RawTransaction, Rule
from ..term_ui import Confirm, render_table

_logger = get_logger("bank_reconcile.workflows.categorize_flow")

type Named = Mapping[str, Any]

RULE_COLUMNS: tuple[str, ...] = ("date", "payee_name", "category", "old_category")
FILE_COLUMNS: tuple[str, ...] = ("date", "payee_name", "category")


def as_record(tx: Named) -> RawTransaction:
    """View a named ledger transaction as the record shape rules expect."""

    return RawTransaction(
        date=tx["date"],
        payee_name=tx["payee_name"],
        amount=tx["amount"],
        notes=tx.get("notes"),
        account=tx.get("account"),
        category=tx.get("category"),
        transfer=tx.get("transfer"),
    )


def _regular(tx: Named) -> bool:
    return not tx.get("transfer_id") and not tx.get("is_parent")


def rule_changes(transactions: Sequence[Named], rules: Sequence[Rule]) -> list[dict[str, Any]]:
    """Return the transactions whose category the rules would change."""

    active = auto_rules(rules)
    changes: list[dict[str, Any]] = []
    for tx in transactions:
        if not _regular(tx):
            continue
        rule = match_rule(as_record(tx), active)
        if rule is not None and rule.name != tx.get("category"):
            changes.append({**tx, "category": rule.name, "old_category": tx.get("category")})
    return changes


def record_key(tx: Named) -> str:
    return f"{tx.get('date')} | {tx.get('payee_name')} | {tx.get('notes')}"


def file_matches(
    transactions: Sequence[Named], rows: Sequence[Named]
) -> list[dict[str, Any]]:
    """Return uncategorized transactions with the category found in ``rows``."""

    by_key = {record_key(r): r["category"] for r in rows if r.get("category")}
    found: list[dict[str, Any]] = []
    for tx in transactions:
        if tx.get("category") or not _regular(tx):
            continue
        category = by_key.get(record_key(tx))
        if category is not None:
            found.append({**tx, "category": category})
    return found


async def _apply(session: LedgerSession, changes: Sequence[Named]) -> int:
    await session.update_transactions(
        {tx["id"]: {"category": session.category_id(tx["category"])} for tx in changes}
    )
    _logger.info("Updated %d transactions", len(changes))
    return len(changes)


async def categorize_by_rules(
    session: LedgerSession,
    rules: Sequence[Rule],
    *,
    confirm: Confirm,
    out: Console | None = None,
) -> int:
    changes = rule_changes(session.named_transactions(), rules)
    _logger.info("Categorized %d transactions", len(changes))
    if not changes:
        return 0
    render_table(changes, RULE_COLUMNS, out=out)
    if not confirm("Continue?"):
        return 0
    return await _apply(session, changes)


async def categorize_from_file(
    session: LedgerSession,
    path: str | PathLike[str],
    *,
    confirm: Confirm,
    out: Console | None = None,
) -> int:
    found = file_matches(session.named_transactions(), read_records(path))
    known = [tx for tx in found if tx["category"] in session.categories_by_name]
    _logger.info(
        "Found %d transactions in file, out of which %d have known categories",
        len(found),
        len(known),
    )
    if not found:
        return 0
    render_table(found, FILE_COLUMNS, out=out)
    if not confirm("Continue?"):
        return 0
    return await _apply(session, known)


__all__ = [
    "as_record",
    "rule_changes",
    "record_key",
    "file_matches",
    "categorize_by_rules",
    "categorize_from_file",
]
