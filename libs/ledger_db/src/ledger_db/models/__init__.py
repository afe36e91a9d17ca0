"""SQLAlchemy models registry for the ledger database."""

from .ledger import (
    Base,
    LedgerAccountRow,
    LedgerCategoryGroupRow,
    LedgerCategoryRow,
    LedgerPayeeRow,
    LedgerTransactionRow,
)

__all__ = [
    "Base",
    "LedgerAccountRow",
    "LedgerCategoryGroupRow",
    "LedgerCategoryRow",
    "LedgerPayeeRow",
    "LedgerTransactionRow",
]
