"""Tests for CSV tokenizing into numbered rows."""
import pytest

from greengrocer.imports.parser import CSVParseError, parse_csv


def test_header_is_trimmed_and_lowercased():
    rows = parse_csv(b" Name , EMAIL \nAlice,alice@x.com\n")
    assert rows[0].data == {"name": "Alice", "email": "alice@x.com"}


def test_rows_are_numbered_from_one_excluding_header():
    rows = parse_csv(b"name\nA\nB\nC\n")
    assert [r.row for r in rows] == [1, 2, 3]
    assert [r.data["name"] for r in rows] == ["A", "B", "C"]


def test_blank_lines_are_skipped_without_consuming_a_number():
    rows = parse_csv(b"name,email\n\nA,a@x.com\n\n,\nB,b@x.com\n")
    assert [(r.row, r.data["name"]) for r in rows] == [(1, "A"), (2, "B")]


def test_delimiter_only_lines_count_as_blank():
    rows = parse_csv(b"sku,name,price\nTOM001,Tomato,2.50\n,,\n , ,\nCAR001,Carrot,1.20\n,,\n")
    assert [(r.row, r.data["sku"]) for r in rows] == [(1, "TOM001"), (2, "CAR001")]


def test_utf8_bom_is_ignored():
    rows = parse_csv("\ufeffname\nÇiğdem\n".encode("utf-8"))
    assert rows[0].data == {"name": "Çiğdem"}


def test_crlf_line_endings():
    rows = parse_csv(b"sku,name\r\nTOM001,Tomato\r\n")
    assert rows[0].data == {"sku": "TOM001", "name": "Tomato"}


def test_quoted_fields_keep_commas_and_quotes():
    rows = parse_csv(b'name,notes\n"Doe, Jane","say ""hi"""\n')
    assert rows[0].data == {"name": "Doe, Jane", "notes": 'say "hi"'}


def test_header_only_file_has_no_rows():
    assert parse_csv(b"name,email\n") == []


def test_empty_file_is_rejected():
    with pytest.raises(CSVParseError, match="File is empty"):
        parse_csv(b"")


def test_field_count_mismatch_is_rejected():
    with pytest.raises(CSVParseError, match="expected 2 fields, found 1"):
        parse_csv(b"name,email\nAlice\n")


def test_unterminated_quote_is_rejected():
    with pytest.raises(CSVParseError):
        parse_csv(b'name\n"Alice\n')


def test_invalid_utf8_is_rejected():
    with pytest.raises(CSVParseError, match="UTF-8"):
        parse_csv(b"name\n\xff\xfe\xfa\n")


def test_duplicate_header_is_rejected():
    with pytest.raises(CSVParseError, match="Duplicate column 'name'"):
        parse_csv(b"name,Name\nA,B\n")


def test_headerless_file_uses_given_fieldnames():
    rows = parse_csv(b"TOM001,Tomato\n", has_header=False, fieldnames=["SKU", "Name"])
    assert rows[0].row == 1
    assert rows[0].data == {"sku": "TOM001", "name": "Tomato"}


def test_headerless_file_requires_fieldnames():
    with pytest.raises(CSVParseError):
        parse_csv(b"TOM001,Tomato\n", has_header=False)


def test_parse_error_is_a_value_error():
    assert issubclass(CSVParseError, ValueError)
