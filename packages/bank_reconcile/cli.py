"""CLI for the ``bank_reconcile`` package.

This module exposes callable command handlers (``cmd_setup``, ``cmd_import``,
...) and a Typer-based console interface. Environment variables (notably
``LEDGER_DATABASE_URL``) are loaded from a local ``.env`` using
``python-dotenv`` before any command runs. Business logic lives in
``bank_reconcile.workflows``.

Every handler returns a process exit code: expected failures
(:class:`~bank_reconcile.errors.ReconcileError`) are printed as one
``Error: ...`` line on stderr and return ``1``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from functools import partial
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from .config import BudgetConfig, load_config
from .errors import ReconcileError
from .ledger import LedgerClient, LedgerSession
from .logging_setup import configure_logging
from .persistence import SqlLedgerClient
from .term_ui import ask, confirm
from .workflows.budget_flow import (
    delete_transactions,
    export_transactions,
    import_statements,
    setup_budget,
)
from .workflows.categorize_flow import categorize_by_rules, categorize_from_file


def make_client() -> LedgerClient:
    """Return the ledger client used by every command."""

    return SqlLedgerClient()


def _fail(exc: Exception) -> int:
    typer.echo(f"Error: {exc}", err=True)
    return 1


async def _with_session[T](
    config: BudgetConfig, work: Callable[[LedgerSession], Awaitable[T]]
) -> T:
    client = make_client()
    try:
        session = await LedgerSession.open(client, config.sync_id)
        return await work(session)
    finally:
        await client.shutdown()


# ---- Command handlers ----------------------------------------------------------


def cmd_setup(config_path: str) -> int:
    """Recreate categories and accounts in the ledger from the config."""

    try:
        config = load_config(config_path)
        asyncio.run(_with_session(config, lambda s: setup_budget(s, config)))
    except ReconcileError as exc:
        return _fail(exc)
    typer.echo("Budget set up")
    return 0


async def _import(
    config: BudgetConfig, file: str | None, month: str | None, account: str | None
) -> dict[str, int] | Path:
    client: LedgerClient | None = None

    async def connect() -> LedgerSession:
        nonlocal client
        client = make_client()
        return await LedgerSession.open(client, config.sync_id)

    try:
        return await import_statements(
            config,
            connect=connect,
            ask=ask,
            destination=file,
            month=month,
            account=account,
        )
    finally:
        if client is not None:
            await client.shutdown()


def cmd_import(
    config_path: str,
    file: str | None = None,
    *,
    month: str | None = None,
    account: str | None = None,
) -> int:
    """Parse statements and import them into the ledger or write them to a file."""

    try:
        config = load_config(config_path)
        result = asyncio.run(_import(config, file, month, account))
    except ReconcileError as exc:
        return _fail(exc)
    if isinstance(result, Path):
        typer.echo(f"Wrote {result}")
    else:
        typer.echo(f"Imported {sum(result.values())} transactions")
    return 0


def cmd_delete(config_path: str) -> int:
    """Delete every transaction in the ledger."""

    try:
        config = load_config(config_path)
        count = asyncio.run(_with_session(config, delete_transactions))
    except ReconcileError as exc:
        return _fail(exc)
    typer.echo(f"Deleted {count} transactions")
    return 0


def cmd_categorize(config_path: str, file: str | None = None) -> int:
    """Categorize ledger transactions by rules, or from a reference export."""

    try:
        config = load_config(config_path)
        if file is None:
            typer.echo(
                "Specify a file to import categories from a file. "
                "Trying categorization using the rules from the config file"
            )
            work = partial(categorize_by_rules, rules=config.categories, confirm=confirm)
        else:
            work = partial(categorize_from_file, path=file, confirm=confirm)
        count = asyncio.run(_with_session(config, work))
    except ReconcileError as exc:
        return _fail(exc)
    typer.echo(f"Updated {count} transactions")
    return 0


def cmd_export(config_path: str, file: str | None = None) -> int:
    """Export ledger transactions to CSV/JSON."""

    try:
        config = load_config(config_path)
        path = asyncio.run(
            _with_session(config, lambda s: export_transactions(s, config, ask=ask, file=file))
        )
    except ReconcileError as exc:
        return _fail(exc)
    typer.echo(f"Wrote {path}")
    return 0


# ---- Typer-based console interface -----------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import bank statements into a budget ledger and keep its categories in order. "
        "Loads LEDGER_DATABASE_URL from a local .env before running."
    ),
)

FileArg = Annotated[
    str | None,
    typer.Argument(help="Output/input file (.csv or .json); asked for when omitted."),
]


def _config_path(ctx: typer.Context) -> str:
    return ctx.obj["config"]


@app.command("setup")
def setup_cmd(ctx: typer.Context) -> None:
    """Run the setup: recreate categories and accounts."""

    raise typer.Exit(cmd_setup(_config_path(ctx)))


@app.command("import")
def import_cmd(
    ctx: typer.Context,
    file: Annotated[
        str | None,
        typer.Argument(help="Import to 'ledger' or write to [file.json/csv]."),
    ] = None,
    month: Annotated[
        str | None,
        typer.Option(
            "--month",
            "-m",
            help=(
                "Month to import, e.g. 2021-01 for a specific month, or 2021-01,2021-02 "
                "for a range. Ranges are inclusive and can be open-ended with a comma "
                "at the start or end."
            ),
        ),
    ] = None,
    account: Annotated[
        str | None, typer.Option("--account", "-a", help="Account to import.")
    ] = None,
) -> None:
    """Import statement files."""

    raise typer.Exit(cmd_import(_config_path(ctx), file, month=month, account=account))


@app.command("delete")
def delete_cmd(ctx: typer.Context) -> None:
    """Delete all transactions."""

    raise typer.Exit(cmd_delete(_config_path(ctx)))


@app.command("categorize")
def categorize_cmd(ctx: typer.Context, file: FileArg = None) -> None:
    """Categorize missing transactions."""

    raise typer.Exit(cmd_categorize(_config_path(ctx), file))


@app.command("export")
def export_cmd(ctx: typer.Context, file: FileArg = None) -> None:
    """Export transactions."""

    raise typer.Exit(cmd_export(_config_path(ctx), file))


@app.callback()
def _root(
    ctx: typer.Context,
    config: Annotated[
        str, typer.Option("--config", "-c", help="The configuration file to use (.py).")
    ],
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging once.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()
    ctx.obj = {"config": config}


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
