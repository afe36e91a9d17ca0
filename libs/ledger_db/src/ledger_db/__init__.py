"""ledger_db: SQL storage for budget ledgers (SQLAlchemy).

Public exports
--------------
- ``Base`` and ``metadata`` for schema creation
- ORM models in ``ledger_db.models.ledger`` (re-exported for convenience)
- Engine/session helpers live in ``ledger_db.client``
"""

from __future__ import annotations

from .models.ledger import (
    Base,
    LedgerAccountRow,
    LedgerCategoryGroupRow,
    LedgerCategoryRow,
    LedgerPayeeRow,
    LedgerTransactionRow,
)

metadata = Base.metadata

__all__ = [
    "Base",
    "metadata",
    "LedgerAccountRow",
    "LedgerCategoryGroupRow",
    "LedgerCategoryRow",
    "LedgerPayeeRow",
    "LedgerTransactionRow",
]
