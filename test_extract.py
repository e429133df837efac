"""Workbook loader tests"""
from datetime import date, datetime

import pytest

from backend.statements.errors import UnreadableWorkbookError, UnsupportedExtensionError
from backend.statements.extract import (
    CSVParser, ParserFactory, XlsParser, XlsxParser, file_extension, format_number, load_workbook,
)
from backend.statements.models import CellKind


def test_xlsx_cells_are_tagged(xlsx_bytes):
    data = xlsx_bytes([
        ["Date", "Narration", "Debit", "Credit", "Balance"],
        [datetime(2024, 3, 1), "ATM withdrawal", 1234.5, None, -500],
    ], number_formats={(1, 2): "#,##0.00", (1, 4): "#,##0.00;(#,##0.00)"})

    grid = load_workbook(data, "statement.xlsx")

    assert len(grid) == 2
    date_cell, text_cell, debit_cell, credit_cell, balance_cell = grid[1]
    assert date_cell.kind == CellKind.DATE
    assert date_cell.display == "01/03/2024"
    assert text_cell.kind == CellKind.TEXT
    assert text_cell.value == "ATM withdrawal"
    assert debit_cell.kind == CellKind.NUMBER
    assert debit_cell.value == 1234.5
    assert debit_cell.display == "1,234.50"
    assert credit_cell.kind == CellKind.EMPTY
    assert balance_cell.display == "(500.00)"


def test_grid_is_rectangular(csv_bytes):
    data = csv_bytes([
        "HDFC BANK",
        "",
        "Date,Narration,Debit,Credit,Balance",
        "01/01/2024,Coffee,50,,950",
    ])
    grid = load_workbook(data, "export.csv")

    assert len(grid) == 4
    assert {len(row) for row in grid} == {5}
    assert grid[0][0].display == "HDFC BANK"
    assert all(cell.is_blank for cell in grid[1])
    assert all(cell.kind in (CellKind.TEXT, CellKind.EMPTY) for row in grid for cell in row)


def test_csv_semicolon_delimiter(csv_bytes):
    data = csv_bytes([
        "Date;Description;Amount",
        "01/01/2024;Groceries;-25.00",
        "02/01/2024;Refund;10.00",
    ])
    grid = load_workbook(data, "export.csv")
    assert grid[1][1].display == "Groceries"
    assert grid[2][2].display == "10.00"


def test_csv_cp1252_bytes_decode(csv_bytes):
    data = csv_bytes(["Date,Description,Amount", "01/01/2024,Café €,5"], encoding="cp1252")
    grid = load_workbook(data, "export.csv")
    assert grid[1][1].display == "Café €"


def test_empty_csv_gives_empty_grid():
    assert load_workbook(b"", "empty.csv") == []


def test_csv_with_nul_bytes_is_unreadable():
    with pytest.raises(UnreadableWorkbookError):
        load_workbook(b"\x00\x01\x02garbage", "broken.csv")


def test_corrupt_xlsx_is_unreadable():
    with pytest.raises(UnreadableWorkbookError) as exc:
        load_workbook(b"PK\x03\x04 truncated archive", "broken.xlsx")
    assert exc.value.file_name == "broken.xlsx"
    assert exc.value.__cause__ is not None


def test_corrupt_xls_is_unreadable():
    with pytest.raises(UnreadableWorkbookError):
        load_workbook(b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 64, "broken.xls")


def test_binary_junk_under_spreadsheet_name_is_unreadable():
    with pytest.raises(UnreadableWorkbookError):
        load_workbook(b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR", "statement.xlsx")


def test_oversized_csv_field_is_unreadable(csv_bytes):
    # an unterminated quote or runaway narration can exceed the csv field limit
    data = csv_bytes(["Date,Narration,Debit", "01/01/2024," + "x" * 200_000 + ",5"])
    with pytest.raises(UnreadableWorkbookError) as exc:
        load_workbook(data, "export.csv")
    assert exc.value.__cause__ is not None


def test_legacy_xls_cells_are_tagged(xls_bytes):
    data = xls_bytes([
        ["Union Bank Statement"],
        ["Date", "Narration", "Debit", "Credit", "Balance"],
        [date(2024, 1, 2), "ATM", 250.75, None, 749.25],
    ])
    assert isinstance(ParserFactory.get_parser("xls", data), XlsParser)

    grid = load_workbook(data, "statement.xls")

    assert len(grid) == 3
    assert {len(row) for row in grid} == {5}
    assert grid[0][0].display == "Union Bank Statement"
    assert grid[0][1].kind == CellKind.EMPTY
    date_cell, text_cell, debit_cell, credit_cell, _ = grid[2]
    assert date_cell.kind == CellKind.DATE
    assert date_cell.display == "02/01/2024"
    assert text_cell.value == "ATM"
    assert debit_cell.kind == CellKind.NUMBER
    assert debit_cell.value == 250.75
    assert credit_cell.kind == CellKind.EMPTY


def test_delimited_text_named_xls_is_read_as_csv():
    data = b"Date\tNarration\tDebit\tCredit\tBalance\n01/01/2024\tSalary\t\t5000\t5000\n"
    assert isinstance(ParserFactory.get_parser("xls", data), CSVParser)
    assert isinstance(ParserFactory.get_parser("xlsx", data), CSVParser)

    grid = load_workbook(data, "statement.xls")
    assert grid[0][1].display == "Narration"
    assert grid[1][3].display == "5000"
    assert grid[1][2].is_blank


def test_unsupported_extension():
    with pytest.raises(UnsupportedExtensionError) as exc:
        load_workbook(b"%PDF-1.4", "statement.pdf")
    assert isinstance(exc.value, ValueError)
    assert exc.value.extension == "pdf"


def test_mislabelled_xlsx_is_read_by_content(xlsx_bytes):
    data = xlsx_bytes([["Date", "Description", "Amount"], ["01/01/2024", "Tea", 3]])
    assert isinstance(ParserFactory.get_parser("xls", data), XlsxParser)
    grid = load_workbook(data, "statement.xls")
    assert grid[1][1].display == "Tea"


def test_parser_factory_by_extension():
    assert isinstance(ParserFactory.get_parser("XLSX"), XlsxParser)
    assert isinstance(ParserFactory.get_parser("xls"), XlsParser)
    assert isinstance(ParserFactory.get_parser(".csv"), CSVParser)


def test_file_extension():
    assert file_extension("May Statement.XLSX") == "xlsx"
    assert file_extension("archive.tar.csv") == "csv"
    assert file_extension("noext") == ""


def test_format_number():
    assert format_number(1500.0) == "1500"
    assert format_number(12.75) == "12.75"
    assert format_number(1234567.891, "#,##0.00") == "1,234,567.89"
    assert format_number(42, "0.0") == "42.0"
    assert format_number(-20, "#,##0.00;(#,##0.00)") == "(20.00)"
    assert format_number(-20, "#,##0.00") == "-20.00"
