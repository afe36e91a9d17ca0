import asyncio
import time

import pytest

from bank_reconcile.errors import ExternalToolError, UnregisteredParserError
from bank_reconcile.ingest import extract, parsers
from bank_reconcile.ingest.parsers import PARSER_NAMES, ensure_registered, parse_statement
from tests.helpers.extractor_stub import CannedTableExtractor


class _FakePage:
    width = 600

    def __init__(self, tables):
        self._tables = tables
        self.settings = None

    def extract_tables(self, table_settings):
        self.settings = table_settings
        return self._tables


class _FakePdf:
    def __init__(self, pages):
        self.pages = pages

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def test_pdfplumber_extractor_cuts_columns_and_strips_cells(monkeypatch):
    pages = [
        _FakePage([[[" 01.01.24 ", "Shop", None]]]),
        _FakePage([[["02.01.24", " Rent ", "10.00"]]]),
    ]
    monkeypatch.setattr(extract.pdfplumber, "open", lambda path: _FakePdf(pages))

    grid = asyncio.run(
        extract.PdfplumberTableExtractor().extract_table("x.pdf", column_boundaries=[100, 200])
    )

    assert grid == [["01.01.24", "Shop", ""], ["02.01.24", "Rent", "10.00"]]
    assert pages[0].settings["explicit_vertical_lines"] == [0, 100, 200, 600]
    assert pages[0].settings["vertical_strategy"] == "explicit"


def test_pdfplumber_extractor_selects_pages(monkeypatch):
    pages = [_FakePage([[["a"]]]), _FakePage([[["b"]]])]
    monkeypatch.setattr(extract.pdfplumber, "open", lambda path: _FakePdf(pages))

    grid = asyncio.run(
        extract.PdfplumberTableExtractor().extract_table("x.pdf", pages=[2], column_boundaries=[])
    )

    assert grid == [["b"]]


def test_pdfplumber_failures_are_external_tool_errors(tmp_path):
    broken = tmp_path / "broken.pdf"
    broken.write_bytes(b"not a pdf")
    with pytest.raises(ExternalToolError, match="table extraction failed"):
        asyncio.run(extract.PdfplumberTableExtractor().extract_table(broken, column_boundaries=[1]))


def test_registry_names():
    assert PARSER_NAMES == {
        "Credit Suisse",
        "Credit Suisse Credit",
        "Interactive Brokers",
        "ZKB",
        "DKB",
        "Cembra",
        "ZKB One",
    }
    assert ensure_registered("ZKB") == "ZKB"
    with pytest.raises(UnregisteredParserError, match="Parser Foo not found"):
        ensure_registered("Foo")
    with pytest.raises(UnregisteredParserError):
        ensure_registered(None)


def test_parse_statement_dispatches_text_and_table_parsers(tmp_path):
    card = tmp_path / "card.csv"
    card.write_text("Transaction date,Description,Amount,Category\n01.02.2024,SHOP,5.00,\n", encoding="utf-8")
    pdf = tmp_path / "cembra.pdf"
    pdf.write_bytes(b"%PDF")
    extractor = CannedTableExtractor({pdf.name: [["01.02.2024", "02.02.2024", "SHOP", "", "5.00"]]})

    text_records = asyncio.run(parse_statement("Credit Suisse Credit", card, extractor=extractor))
    table_records = asyncio.run(parse_statement("Cembra", pdf, extractor=extractor))

    assert [r.amount for r in text_records] == [-500]
    assert [r.amount for r in table_records] == [-500]
    with pytest.raises(UnregisteredParserError):
        asyncio.run(parse_statement("Foo", card, extractor=extractor))


def test_gathered_pdf_extractions_overlap(monkeypatch):
    def _slow_open(path):
        time.sleep(0.3)
        return _FakePdf([_FakePage([[[str(path)]]])])

    monkeypatch.setattr(extract.pdfplumber, "open", _slow_open)
    extractor = extract.PdfplumberTableExtractor()

    async def _all():
        return await asyncio.gather(
            *(extractor.extract_table(f"{i}.pdf", column_boundaries=[]) for i in range(4))
        )

    started = time.perf_counter()
    grids = asyncio.run(_all())
    elapsed = time.perf_counter() - started

    assert grids == [[[f"{i}.pdf"]] for i in range(4)]
    assert elapsed < 0.9


def test_gathered_text_parsers_overlap(monkeypatch, tmp_path):
    def _slow_parser(path):
        time.sleep(0.3)
        return []

    monkeypatch.setitem(parsers.TEXT_PARSERS, "Credit Suisse", _slow_parser)
    extractor = CannedTableExtractor({})

    async def _all():
        return await asyncio.gather(
            *(parse_statement("Credit Suisse", tmp_path / f"{i}.csv", extractor=extractor) for i in range(4))
        )

    started = time.perf_counter()
    assert asyncio.run(_all()) == [[], [], [], []]
    assert time.perf_counter() - started < 0.9
