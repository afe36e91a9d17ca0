"""Statement ingestion: per-institution adapters and the parser registry."""

from .parsers import PARSER_NAMES, parse_statement

__all__ = ["PARSER_NAMES", "parse_statement"]
