import pytest

from bank_reconcile.errors import ParseError
from bank_reconcile.ingest.utils import (
    cell,
    dict_rows,
    first_nonzero,
    parse_decimal_comma,
    parse_float,
    read_text,
    slice_lines,
    strip_thousands,
    to_cents,
    to_iso_date,
)


@pytest.mark.parametrize(
    ("value", "cents"),
    [
        (100.0, 10000),
        (-50.0, -5000),
        (12.345, 1235),
        (-12.345, -1235),
        (0.1 + 0.2, 30),
        (19.99, 1999),
    ],
)
def test_to_cents_rounds_half_away_from_zero(value, cents):
    assert to_cents(value) == cents
    assert isinstance(to_cents(value), int)


def test_parse_float_reads_leading_numeric_prefix():
    assert parse_float("100.00") == 100.0
    assert parse_float(" -7.5 CHF") == -7.5
    assert parse_float("12.50-") == 12.5
    assert parse_float("") is None
    assert parse_float("n/a") is None
    assert parse_float(None) is None


def test_parse_decimal_comma_handles_german_and_plain_numbers():
    assert parse_decimal_comma("-1.234,56") == -1234.56
    assert parse_decimal_comma("42,10") == 42.1
    assert parse_decimal_comma("-15.20") == -15.2
    assert parse_decimal_comma(None) is None


def test_strip_thousands_removes_every_apostrophe():
    assert strip_thousands("1'234'567.80") == "1234567.80"
    assert strip_thousands(None) == ""


def test_first_nonzero_prefers_earlier_candidates_and_skips_zero():
    assert first_nonzero(None, 5.0, -3.0) == 5.0
    assert first_nonzero(0.0, None, -3.0) == -3.0
    assert first_nonzero(None, None) is None
    assert first_nonzero(0.0, 0.0) == 0.0


def test_to_iso_date_two_digit_year():
    assert to_iso_date("31.12.23", "%d.%m.%y") == "2023-12-31"
    assert to_iso_date(" 01.02.2024 ", "%d.%m.%Y") == "2024-02-01"


def test_to_iso_date_rejects_other_patterns():
    with pytest.raises(ParseError) as ei:
        to_iso_date("2023-12-31", "%d.%m.%y", source="stmt.csv")
    assert "stmt.csv" in str(ei.value)
    with pytest.raises(ParseError):
        to_iso_date("", "%d.%m.%Y")


def test_slice_lines_ignores_trailing_blank_lines_for_tail():
    text = "p1\np2\nh\nrow\nsummary\n\n"
    assert slice_lines(text, head=2, tail=1) == "h\nrow"


def test_dict_rows_requires_header_columns():
    with pytest.raises(ParseError, match="missing columns: b"):
        dict_rows("a,c\n1,2\n", delimiter=",", required={"a", "b"})
    with pytest.raises(ParseError, match="no header"):
        dict_rows("", delimiter=",", required={"a"})


def test_dict_rows_strips_headers_and_drops_surplus_cells():
    rows = dict_rows(" a ;b\n1;2;3\n4\n", delimiter=";", required={"a", "b"})
    assert rows == [{"a": "1", "b": "2"}, {"a": "4", "b": ""}]


def test_cell_out_of_range_is_empty():
    assert cell(["x", "y"], 1) == "y"
    assert cell(["x"], 4) == ""


def test_read_text_falls_back_to_cp1252(tmp_path):
    path = tmp_path / "latin.csv"
    path.write_bytes("Z\xfcrich;12.50\r\n".encode("latin-1"))
    assert read_text(path) == "Zürich;12.50\n"


def test_read_text_drops_utf8_bom(tmp_path):
    path = tmp_path / "bom.csv"
    path.write_bytes(b"\xef\xbb\xbfDate;Amount\n")
    assert read_text(path) == "Date;Amount\n"


def test_read_text_undecodable_bytes_are_parse_errors(tmp_path):
    path = tmp_path / "binary.csv"
    path.write_bytes(b"\x81\x8d\x8f")
    with pytest.raises(ParseError, match="cannot decode") as ei:
        read_text(path)
    assert str(path) in str(ei.value)
