"""Table extraction boundary for PDF statements.

Statement adapters for PDF exports never touch a PDF library directly. They
ask a :class:`TableExtractor` for the text grid of a file, cut at fixed
column boundaries (x coordinates in PDF points), and only interpret cells.

:class:`PdfplumberTableExtractor` is the default implementation. Each column
boundary becomes an explicit vertical ruling line; rows are found from the
text layout of every requested page.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from os import PathLike
from typing import Literal, Protocol

import pdfplumber

from ..errors import ExternalToolError
from ..logging_setup import get_logger

_logger = get_logger("bank_reconcile.ingest.extract")

type Pages = Literal["all"] | Sequence[int]
type Grid = list[list[str]]


class TableExtractor(Protocol):
    async def extract_table(
        self,
        path: str | PathLike[str],
        *,
        pages: Pages = "all",
        column_boundaries: Sequence[float],
    ) -> Grid: ...


class PdfplumberTableExtractor:
    """Extract a single row grid from every page of a PDF with pdfplumber."""

    def __init__(self, *, snap_tolerance: float = 3) -> None:
        self._snap_tolerance = snap_tolerance

    def _settings(self, width: float, column_boundaries: Sequence[float]) -> dict:
        return {
            "vertical_strategy": "explicit",
            "explicit_vertical_lines": [0, *column_boundaries, width],
            "horizontal_strategy": "text",
            "snap_tolerance": self._snap_tolerance,
        }

    def _extract(
        self, path: str | PathLike[str], pages: Pages, column_boundaries: Sequence[float]
    ) -> Grid:
        grid: Grid = []
        with pdfplumber.open(path) as pdf:
            selected = pdf.pages if pages == "all" else [pdf.pages[n - 1] for n in pages]
            for page in selected:
                settings = self._settings(page.width, column_boundaries)
                for table in page.extract_tables(table_settings=settings):
                    for row in table:
                        grid.append([(c or "").strip() for c in row])
        return grid

    async def extract_table(
        self,
        path: str | PathLike[str],
        *,
        pages: Pages = "all",
        column_boundaries: Sequence[float],
    ) -> Grid:
        # pdfplumber blocks; keep it off the event loop
        try:
            grid = await asyncio.to_thread(self._extract, path, pages, column_boundaries)
        except Exception as exc:
            raise ExternalToolError(f"table extraction failed for {path}: {exc}") from exc
        _logger.debug("Extracted %d rows from %s", len(grid), path)
        return grid


__all__ = ["TableExtractor", "PdfplumberTableExtractor", "Grid", "Pages"]
