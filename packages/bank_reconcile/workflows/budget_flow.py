"""Workflow orchestrators for the budget-level commands.

- :func:`setup_budget`: rebuild categories and accounts from the config.
- :func:`import_statements`: parse statement folders, preview, then import
  into the ledger or write a CSV/JSON file.
- :func:`delete_transactions`: delete every ledger transaction.
- :func:`export_transactions`: write the ledger's transactions (with names
  instead of ids) to a CSV/JSON file.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path

from rich.console import Console

from ..config import BudgetConfig
from ..exchange import write_records
from ..ingest.extract import TableExtractor
from ..ledger import LedgerSession
from ..logging_setup import get_logger
from ..pipeline import PREVIEW_COLUMNS, collect_transactions
from ..term_ui import Ask, render_table

_logger = get_logger("bank_reconcile.workflows.budget_flow")

LEDGER_DESTINATION = "ledger"

type Connect = Callable[[], Awaitable[LedgerSession]]


async def setup_budget(session: LedgerSession, config: BudgetConfig) -> None:
    """Replace the ledger's categories and accounts with the config's."""

    await session.delete_categories()
    _logger.info("Categories deleted")
    await session.setup_categories(config.categories)
    _logger.info("Categories set up")
    await session.delete_accounts()
    _logger.info("Accounts deleted")
    await session.setup_accounts(config.accounts)
    _logger.info("Accounts set up")


async def import_statements(
    config: BudgetConfig,
    *,
    connect: Connect,
    ask: Ask,
    destination: str | None = None,
    month: str | None = None,
    account: str | None = None,
    extractor: TableExtractor | None = None,
    out: Console | None = None,
) -> dict[str, int] | Path:
    """Parse, preview and deliver statement records.

    ``destination`` (asked for when ``None``) is either ``"ledger"`` or an
    output file name resolved next to the config file. Returns the per-account
    counts added to the ledger, or the path written.
    """

    batch = await collect_transactions(
        config, month=month, account=account, extractor=extractor
    )
    for name, records in batch.items():
        if records:
            render_table(
                records,
                PREVIEW_COLUMNS,
                title=f"Would import {len(records)} transactions for {name}",
                out=out,
            )

    target = destination or ask(f"Write to '{LEDGER_DESTINATION}' or [file.json/csv]?", "")
    if target == LEDGER_DESTINATION:
        session = await connect()
        added = await session.import_transactions(batch)
        for name, count in added.items():
            _logger.info("Imported %d transactions into %s", count, name)
        return added
    return write_records(
        config.resolve(target), [r for records in batch.values() for r in records]
    )


async def delete_transactions(session: LedgerSession) -> int:
    count = await session.delete_transactions()
    _logger.info("Deleted %d transactions", count)
    return count


async def export_transactions(
    session: LedgerSession,
    config: BudgetConfig,
    *,
    ask: Ask,
    file: str | None = None,
) -> Path:
    target = file or ask("File to write to [csv/json]", f"{config.path.stem}.json")
    return write_records(Path(target), session.named_transactions())


__all__ = [
    "LEDGER_DESTINATION",
    "setup_budget",
    "import_statements",
    "delete_transactions",
    "export_transactions",
]
