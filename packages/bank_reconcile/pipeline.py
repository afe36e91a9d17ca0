"""Reconciliation pipeline: statement folders → per-account record batches.

For every account with a ``folder`` (and, when ``--account`` is given, only
that account):

1. resolve the folder (relative to the config file) to its statement files,
2. parse all files concurrently with the account's registered parser,
3. flatten, :func:`~bank_reconcile.duplicates.dedupe`,
4. keep records passing both the month filter and the account's ``filter``,
5. set ``account``, apply the account's ``transform``, then categorize.

Accounts are processed concurrently. An account whose parser is not
registered is logged and yields no records; every other failure propagates.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from .categorization import auto_rules, categorize
from .config import BudgetConfig
from .duplicates import dedupe
from .errors import ParseError, UnregisteredParserError
from .ingest.extract import PdfplumberTableExtractor, TableExtractor
from .ingest.parsers import ensure_registered, parse_statement
from .logging_setup import get_logger
from .models import AccountConfig, RawTransaction, Rule
from .periods import RecordPredicate, month_filter

_logger = get_logger("bank_reconcile.pipeline")

type Batch = dict[str, list[RawTransaction]]

PREVIEW_COLUMNS: tuple[str, ...] = ("date", "payee_name", "amount", "category", "transfer")


def resolve_files(path: Path) -> list[Path]:
    """Return the statement files at ``path``.

    A directory yields its non-hidden regular files sorted by name; a file
    yields itself.
    """

    if path.is_dir():
        return sorted(
            (p for p in path.iterdir() if p.is_file() and not p.name.startswith(".")),
            key=lambda p: p.name,
        )
    if path.is_file():
        return [path]
    raise ParseError("statement path does not exist", source=path)


def prepare_records(
    records: Sequence[RawTransaction],
    *,
    account: AccountConfig,
    rules: Sequence[Rule],
    keep: RecordPredicate,
) -> list[RawTransaction]:
    """Dedupe, filter, tag with the account, transform and categorize."""

    active = auto_rules(rules)
    prepared: list[RawTransaction] = []
    for record in dedupe(records):
        if not keep(record):
            continue
        if account.filter is not None and not account.filter(record):
            continue
        record = replace(record, account=account.name)
        if account.transform is not None:
            record = account.transform(record)
        prepared.append(categorize(record, active))
    return prepared


async def parse_account(
    account: AccountConfig,
    *,
    config: BudgetConfig,
    keep: RecordPredicate,
    extractor: TableExtractor,
) -> list[RawTransaction]:
    if not account.folder:
        return []
    parser = ensure_registered(account.parser)
    files = resolve_files(config.resolve(account.folder))
    _logger.debug("Parsing %d files for %s", len(files), account.name)
    parsed = await asyncio.gather(
        *(parse_statement(parser, f, extractor=extractor) for f in files)
    )
    records = [r for batch in parsed for r in batch]
    return prepare_records(records, account=account, rules=config.categories, keep=keep)


async def collect_transactions(
    config: BudgetConfig,
    *,
    month: str | None = None,
    account: str | None = None,
    extractor: TableExtractor | None = None,
) -> Batch:
    """Parse every eligible account; return account name → records.

    Every configured account appears in the result, with ``[]`` for accounts
    that were skipped.
    """

    keep = month_filter(month)
    table_extractor = extractor or PdfplumberTableExtractor()

    if account is not None and all(a.name != account for a in config.accounts):
        _logger.warning("No account named %r in %s", account, config.path.name)

    async def _one(acct: AccountConfig) -> list[RawTransaction]:
        if (account is not None and acct.name != account) or not acct.folder:
            return []
        try:
            ensure_registered(acct.parser)
        except UnregisteredParserError as exc:
            _logger.error("%s; skipping account %s", exc, acct.name)
            return []
        records = await parse_account(acct, config=config, keep=keep, extractor=table_extractor)
        _logger.info("Would import %d transactions for %s", len(records), acct.name)
        return records

    results = await asyncio.gather(*(_one(a) for a in config.accounts))
    return {a.name: records for a, records in zip(config.accounts, results, strict=True)}


__all__ = [
    "Batch",
    "PREVIEW_COLUMNS",
    "resolve_files",
    "prepare_records",
    "parse_account",
    "collect_transactions",
]
