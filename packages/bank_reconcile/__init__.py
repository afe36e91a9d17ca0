"""Public interface for the ``bank_reconcile`` package.

Symbol re-exports only; see ``bank_reconcile.cli`` for the console entry
point and ``bank_reconcile.workflows`` for the command orchestrators.
"""

from .categorization import categorize, categorize_all
from .config import BudgetConfig, load_config
from .duplicates import dedupe
from .errors import (
    ConfigError,
    ExternalToolError,
    InvalidFilterError,
    ParseError,
    ReconcileError,
    UnknownReferenceError,
    UnregisteredParserError,
)
from .ledger import LedgerClient, LedgerSession
from .models import AccountConfig, RawTransaction, Rule
from .periods import month_filter
from .pipeline import collect_transactions

__all__ = [
    "RawTransaction",
    "Rule",
    "AccountConfig",
    "BudgetConfig",
    "load_config",
    "dedupe",
    "categorize",
    "categorize_all",
    "month_filter",
    "collect_transactions",
    "LedgerClient",
    "LedgerSession",
    "ReconcileError",
    "ParseError",
    "InvalidFilterError",
    "UnknownReferenceError",
    "UnregisteredParserError",
    "ExternalToolError",
    "ConfigError",
]
