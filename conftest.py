"""Shared builders for statement test files"""
import io
import struct
from datetime import date, datetime

import pytest
from openpyxl import Workbook

from backend.statements import ParseOptions


def build_xlsx(rows, number_formats=None):
    """
    Build .xlsx bytes from a list of rows.
    number_formats maps (row_idx, col_idx), both 0-based, to an Excel format string.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Statement"
    for r, row in enumerate(rows, 1):
        for c, value in enumerate(row, 1):
            if value is None:
                continue
            ws.cell(row=r, column=c, value=value)
    for (r, c), fmt in (number_formats or {}).items():
        ws.cell(row=r + 1, column=c + 1).number_format = fmt
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def build_csv(lines, encoding="utf-8"):
    return "\n".join(lines).encode(encoding)


# BIFF2 cell attribute bytes; the second byte indexes the FORMAT records below
_GENERAL_ATTR = b"\x00\x00\x00"
_DATE_ATTR = b"\x00\x01\x00"
_EXCEL_EPOCH = datetime(1899, 12, 30)


def _biff_record(opcode, payload):
    return struct.pack("<HH", opcode, len(payload)) + payload


def _biff_string(text):
    raw = text.encode("cp1252")
    return struct.pack("<B", len(raw)) + raw


def build_xls(rows):
    """
    Build legacy .xls bytes: a bare BIFF2 worksheet stream, which xlrd reads
    without an OLE2 container. Dates are stored as serials with a dd/mm/yyyy format.
    """
    records = [
        _biff_record(0x0009, struct.pack("<HH", 0x0002, 0x0010)),  # BOF, worksheet
        _biff_record(0x0042, struct.pack("<H", 1252)),             # CODEPAGE
        _biff_record(0x001E, _biff_string("General")),             # FORMAT 0
        _biff_record(0x001E, _biff_string("dd/mm/yyyy")),          # FORMAT 1
    ]
    for r, row in enumerate(rows):
        for c, value in enumerate(row):
            if value is None:
                continue
            if isinstance(value, date):
                serial = (datetime(value.year, value.month, value.day) - _EXCEL_EPOCH).days
                records.append(_biff_record(0x0003, struct.pack("<HH3sd", r, c, _DATE_ATTR, float(serial))))
            elif isinstance(value, str):
                records.append(_biff_record(0x0004, struct.pack("<HH3s", r, c, _GENERAL_ATTR) + _biff_string(value)))
            else:
                records.append(_biff_record(0x0003, struct.pack("<HH3sd", r, c, _GENERAL_ATTR, float(value))))
    records.append(_biff_record(0x000A, b""))  # EOF
    return b"".join(records)


@pytest.fixture
def xlsx_bytes():
    return build_xlsx


@pytest.fixture
def csv_bytes():
    return build_csv


@pytest.fixture
def xls_bytes():
    return build_xls


@pytest.fixture
def options():
    return ParseOptions(default_currency="INR", ingestion_date=date(2024, 6, 30))


@pytest.fixture
def reconciliation_csv():
    return build_csv([
        "Date,Description,Debit,Credit,Balance",
        "01/01/2024,Opening Balance,0,0,10000",
        "02/01/2024,Salary Credit,0,5000,15000",
    ])
