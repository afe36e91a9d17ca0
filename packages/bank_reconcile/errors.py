"""Error taxonomy for ``bank_reconcile``.

Every failure the package raises on purpose derives from
:class:`ReconcileError`, so the CLI can print one concise line and exit
non-zero without catching unrelated programming errors.

- ``ParseError``: a statement file does not have the expected structure, or a
  required field (the date) does not match the institution's pattern. Fatal
  to that file.
- ``InvalidFilterError``: a ``--month`` value cannot be interpreted.
- ``UnknownReferenceError``: an account/category/payee name has no ledger id
  while building an import or update batch. Fatal to the whole batch.
- ``UnregisteredParserError``: an account names a parser that is not in the
  registry. The pipeline skips that account and continues with the others.
- ``ExternalToolError``: the table extractor or the ledger backend failed.
- ``ConfigError``: the budget config module is missing, has the wrong
  extension, or does not validate.
"""

from __future__ import annotations

from pathlib import Path


class ReconcileError(Exception):
    """Base class for all expected failures."""


class ParseError(ReconcileError):
    def __init__(self, message: str, *, source: str | Path | None = None) -> None:
        self.source = str(source) if source is not None else None
        super().__init__(f"{self.source}: {message}" if self.source else message)


class InvalidFilterError(ReconcileError):
    pass


class UnknownReferenceError(ReconcileError):
    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"Unknown {kind}: {name!r}")


class UnregisteredParserError(ReconcileError):
    def __init__(self, parser: str) -> None:
        self.parser = parser
        super().__init__(f"Parser {parser} not found")


class ExternalToolError(ReconcileError):
    pass


class ConfigError(ReconcileError):
    pass


__all__ = [
    "ReconcileError",
    "ParseError",
    "InvalidFilterError",
    "UnknownReferenceError",
    "UnregisteredParserError",
    "ExternalToolError",
    "ConfigError",
]
