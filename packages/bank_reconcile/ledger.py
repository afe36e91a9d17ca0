"""Ledger boundary: the ``LedgerClient`` protocol and the ``LedgerSession`` snapshot.

The budgeting backend is reached only through :class:`LedgerClient`, whose
methods speak ledger ids. :class:`LedgerSession` owns a client plus an
in-memory snapshot of accounts, category groups, categories, payees and
transactions. It is the only place where names (as used in the budget config
and in parsed records) are translated to ids and back.

The snapshot is read-modify-refresh: every mutating method awaits its client
calls (fanned out with :func:`asyncio.gather`) and then refreshes the affected
parts. Concurrent edits to the same ledger from elsewhere are not guarded.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from .errors import UnknownReferenceError
from .ingest.utils import to_cents
from .logging_setup import get_logger
from .models import AccountConfig, RawTransaction, Rule

_logger = get_logger("bank_reconcile.ledger")

INCOME_GROUP = "Income"
STARTING_BALANCE = "Starting Balance"
STARTING_BALANCE_DATE = "2019-01-01"

# ---------------------------------------------------------------------------
# Ledger-side records (ids, not names)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LedgerAccount:
    id: str
    name: str
    type: str = "checking"
    offbudget: bool = False


@dataclass(frozen=True, slots=True)
class LedgerCategoryGroup:
    id: str
    name: str
    is_income: bool = False


@dataclass(frozen=True, slots=True)
class LedgerCategory:
    id: str
    name: str
    group_id: str
    is_income: bool = False


@dataclass(frozen=True, slots=True)
class LedgerPayee:
    id: str
    name: str
    # Set for the payee representing "transfer to/from this account"
    transfer_account_id: str | None = None


@dataclass(frozen=True, slots=True)
class LedgerTransaction:
    id: str
    account: str
    date: str
    amount: int
    payee: str | None = None
    notes: str | None = None
    category: str | None = None
    transfer_id: str | None = None
    is_parent: bool = False
    parent_id: str | None = None
    imported_payee: str | None = None


@dataclass(frozen=True, slots=True)
class ImportRecord:
    """A transaction to import, already translated to ledger ids.

    ``payee`` (an id) wins over ``payee_name``; it is set for transfers.
    """

    date: str
    amount: int
    payee_name: str
    notes: str | None = None
    category: str | None = None
    payee: str | None = None


class LedgerClient(Protocol):
    """Async boundary to the budgeting backend."""

    async def init(self, sync_id: str) -> None: ...

    async def get_accounts(self) -> list[LedgerAccount]: ...

    async def get_category_groups(self) -> list[LedgerCategoryGroup]: ...

    async def get_categories(self) -> list[LedgerCategory]: ...

    async def get_payees(self) -> list[LedgerPayee]: ...

    async def get_transactions(self) -> list[LedgerTransaction]: ...

    async def create_account(self, *, name: str, type: str, offbudget: bool) -> str: ...

    async def create_category_group(self, *, name: str, is_income: bool = False) -> str: ...

    async def create_category(self, *, name: str, group_id: str, is_income: bool) -> str: ...

    async def delete_account(self, account_id: str) -> None: ...

    async def delete_category(self, category_id: str) -> None: ...

    async def delete_category_group(self, group_id: str) -> None: ...

    async def import_transactions(
        self, account_id: str, records: Sequence[ImportRecord]
    ) -> list[str]: ...

    async def update_transaction(self, transaction_id: str, patch: Mapping[str, Any]) -> None: ...

    async def delete_transaction(self, transaction_id: str) -> None: ...

    async def shutdown(self) -> None: ...


# ---------------------------------------------------------------------------
# Session (snapshot + name/id translation)
# ---------------------------------------------------------------------------


def _index_by[T](items: Iterable[T], attr: str) -> dict[str, T]:
    return {getattr(item, attr): item for item in items}


class LedgerSession:
    """Explicit, caller-owned snapshot of one budget in the ledger."""

    def __init__(self, client: LedgerClient) -> None:
        self.client = client
        self.accounts: list[LedgerAccount] = []
        self.groups: list[LedgerCategoryGroup] = []
        self.categories: list[LedgerCategory] = []
        self.payees: list[LedgerPayee] = []
        self.transactions: list[LedgerTransaction] = []
        self._accounts_by_name: dict[str, LedgerAccount] = {}
        self._accounts_by_id: dict[str, LedgerAccount] = {}
        self._categories_by_name: dict[str, LedgerCategory] = {}
        self._categories_by_id: dict[str, LedgerCategory] = {}
        self._payees_by_name: dict[str, LedgerPayee] = {}
        self._payees_by_id: dict[str, LedgerPayee] = {}

    @classmethod
    async def open(cls, client: LedgerClient, sync_id: str) -> LedgerSession:
        _logger.info("Initializing ledger for %s", sync_id)
        await client.init(sync_id)
        session = cls(client)
        await session.refresh()
        return session

    async def shutdown(self) -> None:
        await self.client.shutdown()

    # ---- refresh ------------------------------------------------------------

    async def refresh(self) -> None:
        await asyncio.gather(
            self.refresh_accounts(),
            self.refresh_categories(),
            self.refresh_payees(),
            self.refresh_transactions(),
        )

    async def refresh_accounts(self) -> None:
        self.accounts = await self.client.get_accounts()
        self._accounts_by_name = _index_by(self.accounts, "name")
        self._accounts_by_id = _index_by(self.accounts, "id")

    async def refresh_categories(self) -> None:
        self.groups, self.categories = await asyncio.gather(
            self.client.get_category_groups(), self.client.get_categories()
        )
        self._categories_by_name = _index_by(self.categories, "name")
        self._categories_by_id = _index_by(self.categories, "id")

    async def refresh_payees(self) -> None:
        self.payees = await self.client.get_payees()
        self._payees_by_name = _index_by(self.payees, "name")
        self._payees_by_id = _index_by(self.payees, "id")

    async def refresh_transactions(self) -> None:
        self.transactions = await self.client.get_transactions()

    # ---- lookups --------------------------------------------------------------

    @property
    def categories_by_name(self) -> Mapping[str, LedgerCategory]:
        return self._categories_by_name

    def account_id(self, name: str) -> str:
        account = self._accounts_by_name.get(name)
        if account is None:
            raise UnknownReferenceError("account", name)
        return account.id

    def category_id(self, name: str) -> str:
        category = self._categories_by_name.get(name)
        if category is None:
            raise UnknownReferenceError("category", name)
        return category.id

    def transfer_payee_id(self, account_name: str) -> str:
        payee = self._payees_by_name.get(account_name)
        if payee is None:
            raise UnknownReferenceError("transfer payee", account_name)
        return payee.id

    def income_group(self) -> LedgerCategoryGroup | None:
        return next((g for g in self.groups if g.is_income), None)

    # ---- name <-> id translation ------------------------------------------------

    def to_import_record(self, record: RawTransaction) -> ImportRecord:
        return ImportRecord(
            date=record.date,
            amount=record.amount,
            payee_name=record.payee_name,
            notes=record.notes,
            category=self.category_id(record.category) if record.category else None,
            payee=self.transfer_payee_id(record.transfer) if record.transfer else None,
        )

    def to_named(self, tx: LedgerTransaction) -> dict[str, Any]:
        """Return ``tx`` as a plain dict with names in place of ids."""

        account = self._accounts_by_id.get(tx.account)
        category = self._categories_by_id.get(tx.category) if tx.category else None
        payee = self._payees_by_id.get(tx.payee) if tx.payee else None
        payee_name = payee.name if payee else (tx.imported_payee or "")
        return {
            "id": tx.id,
            "account": account.name if account else tx.account,
            "date": tx.date,
            "amount": tx.amount,
            "payee_name": payee_name,
            "notes": tx.notes,
            "category": category.name if category else None,
            "transfer": payee_name if tx.transfer_id else None,
            "transfer_id": tx.transfer_id,
            "is_parent": tx.is_parent,
        }

    def named_transactions(self) -> list[dict[str, Any]]:
        return [self.to_named(tx) for tx in self.transactions]

    # ---- categories ---------------------------------------------------------------

    async def delete_categories(self) -> None:
        """Delete every category and every non-income category group."""

        await asyncio.gather(
            *(self.client.delete_category(c.id) for c in self.categories),
            *(self.client.delete_category_group(g.id) for g in self.groups if not g.is_income),
        )
        await self.refresh_categories()

    async def setup_categories(self, rules: Sequence[Rule]) -> None:
        """Create the groups and categories declared by ``rules``.

        The ``Income`` group maps onto the ledger's income group (created when
        the ledger has none).
        """

        group_names = list(dict.fromkeys(r.group for r in rules))

        async def _group_id(name: str) -> str:
            if name == INCOME_GROUP:
                income = self.income_group()
                if income is not None:
                    return income.id
                return await self.client.create_category_group(name=name, is_income=True)
            return await self.client.create_category_group(name=name)

        ids = await asyncio.gather(*(_group_id(name) for name in group_names))
        group_ids = dict(zip(group_names, ids, strict=True))
        await asyncio.gather(
            *(
                self.client.create_category(
                    name=rule.name,
                    group_id=group_ids[rule.group],
                    is_income=rule.group == INCOME_GROUP,
                )
                for rule in rules
            )
        )
        await self.refresh_categories()

    # ---- accounts -------------------------------------------------------------------

    async def delete_accounts(self) -> None:
        await asyncio.gather(*(self.client.delete_account(a.id) for a in self.accounts))
        await asyncio.gather(self.refresh_accounts(), self.refresh_payees())

    async def setup_accounts(self, accounts: Sequence[AccountConfig]) -> None:
        """Create ``accounts`` and book their initial balances."""

        await asyncio.gather(
            *(
                self.client.create_account(name=a.name, type=a.type, offbudget=a.offbudget)
                for a in accounts
            )
        )
        await asyncio.gather(self.refresh_accounts(), self.refresh_payees())

        with_balance = [a for a in accounts if a.initial_balance is not None]
        if with_balance:
            category = self.category_id(STARTING_BALANCE)
            await asyncio.gather(
                *(
                    self.client.import_transactions(
                        self.account_id(a.name),
                        [
                            ImportRecord(
                                date=STARTING_BALANCE_DATE,
                                amount=to_cents(a.initial_balance),
                                payee_name=STARTING_BALANCE,
                                category=category,
                            )
                        ],
                    )
                    for a in with_balance
                )
            )
        await asyncio.gather(self.refresh_payees(), self.refresh_transactions())

    # ---- transactions ------------------------------------------------------------------

    async def import_transactions(
        self, batch: Mapping[str, Sequence[RawTransaction]]
    ) -> dict[str, int]:
        """Import ``batch`` (account name → records); return added counts per account.

        Every name in the batch is resolved before the first import call, so a
        single unknown account/category/transfer aborts the whole batch.
        """

        prepared = {
            name: (self.account_id(name), [self.to_import_record(r) for r in records])
            for name, records in batch.items()
            if records
        }
        names = list(prepared)
        added = await asyncio.gather(
            *(self.client.import_transactions(*prepared[name]) for name in names)
        )
        await asyncio.gather(self.refresh_payees(), self.refresh_transactions())
        return {name: len(ids) for name, ids in zip(names, added, strict=True)}

    async def update_transactions(self, patches: Mapping[str, Mapping[str, Any]]) -> None:
        await asyncio.gather(
            *(self.client.update_transaction(tx_id, patch) for tx_id, patch in patches.items())
        )
        await self.refresh_transactions()

    async def delete_transactions(self) -> int:
        count = len(self.transactions)
        await asyncio.gather(*(self.client.delete_transaction(t.id) for t in self.transactions))
        await self.refresh_transactions()
        return count


__all__ = [
    "INCOME_GROUP",
    "STARTING_BALANCE",
    "STARTING_BALANCE_DATE",
    "LedgerAccount",
    "LedgerCategoryGroup",
    "LedgerCategory",
    "LedgerPayee",
    "LedgerTransaction",
    "ImportRecord",
    "LedgerClient",
    "LedgerSession",
]
