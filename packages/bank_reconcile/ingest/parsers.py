"""Parser registry: account config ``parser`` names → statement adapters.

Text adapters read the file themselves. PDF adapters additionally need a
:class:`~bank_reconcile.ingest.extract.TableExtractor`; :func:`parse_statement`
hides that difference from the pipeline.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from os import PathLike

from ..errors import UnregisteredParserError
from ..models import RawTransaction
from .adapters.cembra_pdf import parse_cembra
from .adapters.credit_suisse_csv import parse_credit_suisse, parse_credit_suisse_credit
from .adapters.dkb_csv import parse_dkb
from .adapters.interactive_brokers_csv import parse_interactive_brokers
from .adapters.zkb_csv import parse_zkb
from .adapters.zkb_one_pdf import parse_zkb_one
from .extract import TableExtractor

type TextParser = Callable[[str | PathLike[str]], list[RawTransaction]]
type TableParser = Callable[..., Awaitable[list[RawTransaction]]]

TEXT_PARSERS: dict[str, TextParser] = {
    "Credit Suisse": parse_credit_suisse,
    "Credit Suisse Credit": parse_credit_suisse_credit,
    "Interactive Brokers": parse_interactive_brokers,
    "ZKB": parse_zkb,
    "DKB": parse_dkb,
}

TABLE_PARSERS: dict[str, TableParser] = {
    "Cembra": parse_cembra,
    "ZKB One": parse_zkb_one,
}

PARSER_NAMES: frozenset[str] = frozenset(TEXT_PARSERS) | frozenset(TABLE_PARSERS)


def ensure_registered(name: str | None) -> str:
    if name is None or name not in PARSER_NAMES:
        raise UnregisteredParserError(str(name))
    return name


async def parse_statement(
    name: str, path: str | PathLike[str], *, extractor: TableExtractor
) -> list[RawTransaction]:
    """Parse one statement file with the parser registered as ``name``."""

    if name in TEXT_PARSERS:
        # Text parsers read and parse synchronously
        return await asyncio.to_thread(TEXT_PARSERS[name], path)
    if name in TABLE_PARSERS:
        return await TABLE_PARSERS[name](path, extractor=extractor)
    raise UnregisteredParserError(name)


__all__ = [
    "TEXT_PARSERS",
    "TABLE_PARSERS",
    "PARSER_NAMES",
    "ensure_registered",
    "parse_statement",
]
