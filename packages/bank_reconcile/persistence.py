"""SQL-backed :class:`~bank_reconcile.ledger.LedgerClient`.

Stores budgets in the shared ledger database owned by ``libs/ledger_db``.
The database URL is read from ``LEDGER_DATABASE_URL`` unless one is passed
explicitly. Rows are scoped by ``budget_id``, which is the budget's sync id.

Scope:
- Accounts, with one transfer payee per account (named after the account).
- Category groups and categories; ``init`` makes sure an income group exists.
- Importing transactions: payees are created by name, exact duplicates
  (same account, date, amount, imported payee and notes) are skipped, and
  transfers are mirrored into the other account.

The SQL calls are synchronous and short; the async methods run them inline on
the event loop. Any ``SQLAlchemyError`` surfaces as ``ExternalToolError``.
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from datetime import date
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ledger_db.client import DATABASE_URL_ENV, create_schema, reset_engine, session_scope
from ledger_db.models.ledger import (
    LedgerAccountRow,
    LedgerCategoryGroupRow,
    LedgerCategoryRow,
    LedgerPayeeRow,
    LedgerTransactionRow,
)

from .errors import ConfigError, ExternalToolError
from .ledger import (
    INCOME_GROUP,
    ImportRecord,
    LedgerAccount,
    LedgerCategory,
    LedgerCategoryGroup,
    LedgerPayee,
    LedgerTransaction,
)
from .logging_setup import get_logger

_logger = get_logger("bank_reconcile.persistence")

# Patch keys accepted by ``update_transaction`` → column names
_PATCHABLE: dict[str, str] = {
    "category": "category_id",
    "payee": "payee_id",
    "notes": "notes",
    "date": "date",
    "amount": "amount",
}


def _tx_from_row(row: LedgerTransactionRow) -> LedgerTransaction:
    return LedgerTransaction(
        id=row.id,
        account=row.account_id,
        date=row.date.isoformat(),
        amount=row.amount,
        payee=row.payee_id,
        notes=row.notes,
        category=row.category_id,
        transfer_id=row.transfer_id,
        is_parent=row.is_parent,
        parent_id=row.parent_id,
        imported_payee=row.imported_payee,
    )


class SqlLedgerClient:
    """Ledger client over SQLAlchemy sessions from ``ledger_db.client``."""

    def __init__(self, *, database_url: str | None = None) -> None:
        url = database_url or os.getenv(DATABASE_URL_ENV)
        if not url:
            raise ConfigError(f"{DATABASE_URL_ENV} is not set; cannot open the ledger")
        self._database_url = url
        self._budget_id: str | None = None

    @property
    def budget_id(self) -> str:
        if self._budget_id is None:
            raise ExternalToolError("Ledger is not initialized; call init() first")
        return self._budget_id

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with session_scope(database_url=self._database_url) as session:
                yield session
        except SQLAlchemyError as exc:
            raise ExternalToolError(f"Ledger database error: {exc}") from exc

    # ---- lifecycle ------------------------------------------------------------

    async def init(self, sync_id: str) -> None:
        try:
            create_schema(database_url=self._database_url)
        except SQLAlchemyError as exc:
            raise ExternalToolError(f"Ledger database error: {exc}") from exc
        self._budget_id = sync_id
        with self._session() as s:
            income = s.scalars(
                select(LedgerCategoryGroupRow).where(
                    LedgerCategoryGroupRow.budget_id == sync_id,
                    LedgerCategoryGroupRow.is_income.is_(True),
                )
            ).first()
            if income is None:
                s.add(LedgerCategoryGroupRow(budget_id=sync_id, name=INCOME_GROUP, is_income=True))
                _logger.info("Created income group for budget %s", sync_id)

    async def shutdown(self) -> None:
        reset_engine()

    # ---- reads ------------------------------------------------------------------

    async def get_accounts(self) -> list[LedgerAccount]:
        with self._session() as s:
            rows = s.scalars(
                select(LedgerAccountRow)
                .where(LedgerAccountRow.budget_id == self.budget_id)
                .order_by(LedgerAccountRow.created_at)
            )
            return [LedgerAccount(r.id, r.name, r.type, r.offbudget) for r in rows]

    async def get_category_groups(self) -> list[LedgerCategoryGroup]:
        with self._session() as s:
            rows = s.scalars(
                select(LedgerCategoryGroupRow).where(
                    LedgerCategoryGroupRow.budget_id == self.budget_id
                )
            )
            return [LedgerCategoryGroup(r.id, r.name, r.is_income) for r in rows]

    async def get_categories(self) -> list[LedgerCategory]:
        with self._session() as s:
            rows = s.scalars(
                select(LedgerCategoryRow).where(LedgerCategoryRow.budget_id == self.budget_id)
            )
            return [LedgerCategory(r.id, r.name, r.group_id, r.is_income) for r in rows]

    async def get_payees(self) -> list[LedgerPayee]:
        with self._session() as s:
            rows = s.scalars(
                select(LedgerPayeeRow).where(LedgerPayeeRow.budget_id == self.budget_id)
            )
            return [LedgerPayee(r.id, r.name, r.transfer_account_id) for r in rows]

    async def get_transactions(self) -> list[LedgerTransaction]:
        with self._session() as s:
            rows = s.scalars(
                select(LedgerTransactionRow)
                .where(LedgerTransactionRow.budget_id == self.budget_id)
                .order_by(LedgerTransactionRow.date, LedgerTransactionRow.created_at)
            )
            return [_tx_from_row(r) for r in rows]

    # ---- accounts -----------------------------------------------------------------

    async def create_account(self, *, name: str, type: str, offbudget: bool) -> str:
        with self._session() as s:
            account = LedgerAccountRow(
                budget_id=self.budget_id, name=name, type=type, offbudget=offbudget
            )
            s.add(account)
            s.flush()
            s.add(
                LedgerPayeeRow(budget_id=self.budget_id, name=name, transfer_account_id=account.id)
            )
            _logger.debug("Created account %s (%s)", name, account.id)
            return account.id

    async def delete_account(self, account_id: str) -> None:
        with self._session() as s:
            transfer_payee_ids = list(
                s.scalars(
                    select(LedgerPayeeRow.id).where(
                        LedgerPayeeRow.transfer_account_id == account_id
                    )
                )
            )
            if transfer_payee_ids:
                # Transfers booked elsewhere lose their counterpart
                s.execute(
                    update(LedgerTransactionRow)
                    .where(LedgerTransactionRow.payee_id.in_(transfer_payee_ids))
                    .values(payee_id=None, transfer_id=None)
                )
            s.execute(
                delete(LedgerTransactionRow).where(LedgerTransactionRow.account_id == account_id)
            )
            s.execute(delete(LedgerPayeeRow).where(LedgerPayeeRow.transfer_account_id == account_id))
            s.execute(
                delete(LedgerAccountRow).where(
                    LedgerAccountRow.id == account_id,
                    LedgerAccountRow.budget_id == self.budget_id,
                )
            )

    # ---- categories -------------------------------------------------------------------

    async def create_category_group(self, *, name: str, is_income: bool = False) -> str:
        with self._session() as s:
            group = LedgerCategoryGroupRow(budget_id=self.budget_id, name=name, is_income=is_income)
            s.add(group)
            s.flush()
            return group.id

    async def create_category(self, *, name: str, group_id: str, is_income: bool) -> str:
        with self._session() as s:
            category = LedgerCategoryRow(
                budget_id=self.budget_id, name=name, group_id=group_id, is_income=is_income
            )
            s.add(category)
            s.flush()
            return category.id

    @staticmethod
    def _drop_categories(s: Session, category_ids: Sequence[str]) -> None:
        if not category_ids:
            return
        s.execute(
            update(LedgerTransactionRow)
            .where(LedgerTransactionRow.category_id.in_(category_ids))
            .values(category_id=None)
        )
        s.execute(delete(LedgerCategoryRow).where(LedgerCategoryRow.id.in_(category_ids)))

    async def delete_category(self, category_id: str) -> None:
        with self._session() as s:
            self._drop_categories(s, [category_id])

    async def delete_category_group(self, group_id: str) -> None:
        with self._session() as s:
            members = list(
                s.scalars(select(LedgerCategoryRow.id).where(LedgerCategoryRow.group_id == group_id))
            )
            self._drop_categories(s, members)
            s.execute(delete(LedgerCategoryGroupRow).where(LedgerCategoryGroupRow.id == group_id))

    # ---- transactions --------------------------------------------------------------------

    async def import_transactions(
        self, account_id: str, records: Sequence[ImportRecord]
    ) -> list[str]:
        """Insert ``records`` into ``account_id``; return the ids of added rows."""

        budget_id = self.budget_id
        added: list[str] = []
        with self._session() as s:
            if s.get(LedgerAccountRow, account_id) is None:
                raise ExternalToolError(f"Unknown account id: {account_id}")

            payees = {
                p.id: p
                for p in s.scalars(select(LedgerPayeeRow).where(LedgerPayeeRow.budget_id == budget_id))
            }
            by_name = {p.name: p for p in payees.values() if p.transfer_account_id is None}
            own_transfer_payee = next(
                (p for p in payees.values() if p.transfer_account_id == account_id), None
            )
            seen = {
                (r.date.isoformat(), r.amount, r.imported_payee, r.notes)
                for r in s.scalars(
                    select(LedgerTransactionRow).where(LedgerTransactionRow.account_id == account_id)
                )
            }

            for record in records:
                key = (record.date, record.amount, record.payee_name, record.notes)
                if key in seen:
                    _logger.debug("Skipping duplicate %s", key)
                    continue
                seen.add(key)

                if record.payee is not None:
                    payee = payees.get(record.payee)
                    if payee is None:
                        raise ExternalToolError(f"Unknown payee id: {record.payee}")
                else:
                    payee = by_name.get(record.payee_name)
                    if payee is None:
                        payee = LedgerPayeeRow(budget_id=budget_id, name=record.payee_name)
                        s.add(payee)
                        s.flush()
                        payees[payee.id] = by_name[payee.name] = payee

                row = LedgerTransactionRow(
                    budget_id=budget_id,
                    account_id=account_id,
                    date=date.fromisoformat(record.date),
                    amount=record.amount,
                    payee_id=payee.id,
                    imported_payee=record.payee_name,
                    notes=record.notes,
                    category_id=record.category,
                )
                s.add(row)
                s.flush()
                added.append(row.id)

                if payee.transfer_account_id is not None:
                    mirror = LedgerTransactionRow(
                        budget_id=budget_id,
                        account_id=payee.transfer_account_id,
                        date=row.date,
                        amount=-record.amount,
                        payee_id=own_transfer_payee.id if own_transfer_payee else None,
                        notes=record.notes,
                        transfer_id=row.id,
                    )
                    s.add(mirror)
                    s.flush()
                    row.transfer_id = mirror.id

        _logger.info("Imported %d of %d transactions into %s", len(added), len(records), account_id)
        return added

    async def update_transaction(self, transaction_id: str, patch: Mapping[str, Any]) -> None:
        unknown = set(patch) - set(_PATCHABLE)
        if unknown:
            raise ExternalToolError(f"Unsupported transaction fields: {sorted(unknown)}")
        values = {_PATCHABLE[k]: v for k, v in patch.items()}
        if isinstance(values.get("date"), str):
            values["date"] = date.fromisoformat(values["date"])
        with self._session() as s:
            result = s.execute(
                update(LedgerTransactionRow)
                .where(
                    LedgerTransactionRow.id == transaction_id,
                    LedgerTransactionRow.budget_id == self.budget_id,
                )
                .values(**values)
            )
            if result.rowcount == 0:
                raise ExternalToolError(f"Unknown transaction id: {transaction_id}")

    async def delete_transaction(self, transaction_id: str) -> None:
        """Delete a transaction and, for transfers, its mirrored side.

        Deleting an id that is already gone is a no-op.
        """

        with self._session() as s:
            row = s.get(LedgerTransactionRow, transaction_id)
            if row is None:
                return
            if row.transfer_id is not None:
                s.execute(
                    delete(LedgerTransactionRow).where(LedgerTransactionRow.id == row.transfer_id)
                )
            s.delete(row)


__all__ = ["SqlLedgerClient"]
