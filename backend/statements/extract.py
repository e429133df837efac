import csv
import hashlib
import io
import logging
import math
import numbers
import re
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, List, Optional

import openpyxl
import pandas as pd

from .config import Config
from .errors import UnreadableWorkbookError, UnsupportedExtensionError
from .models import RawCell, RawGrid

logger = logging.getLogger(__name__)

# Leading bytes of the two binary spreadsheet containers
_ZIP_MAGIC = b"PK\x03\x04"
_OLE2_MAGIC = b"\xd0\xcf\x11\xe0"
# BOF record opening a bare BIFF2-BIFF8 stream (Excel 2.x-4.x files carry no OLE2 wrapper)
_BIFF_BOF = (b"\x09\x00", b"\x09\x02", b"\x09\x04", b"\x09\x08")

_RE_DECIMALS = re.compile(r'0\.(0+)')


def file_extension(filename: str) -> str:
    name = (filename or "").strip()
    if '.' not in name:
        return ""
    return name.rsplit('.', 1)[-1].lower()


def document_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def format_number(value: Any, number_format: str = "General") -> str:
    """
    Render a number the way a spreadsheet would display it.

    Only the common accounting formats matter here: thousands separators,
    a fixed number of decimals and a parenthesised negative section.
    """
    fmt = number_format or "General"
    sections = fmt.split(';')
    negative_in_parens = len(sections) > 1 and '(' in sections[1]
    positive = sections[0]

    if fmt == "General" or '0' not in positive:
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)

    match = _RE_DECIMALS.search(positive)
    decimals = len(match.group(1)) if match else 0
    pattern = f",.{decimals}f" if '#,##' in positive else f".{decimals}f"

    if value < 0 and negative_in_parens:
        return f"({format(abs(value), pattern)})"
    return format(value, pattern)


def cell_from_value(value: Any, number_format: str = "General") -> RawCell:
    """Tag a raw value coming out of openpyxl, xlrd or pandas."""
    if value is None:
        return RawCell.empty()
    if isinstance(value, bool):
        return RawCell.text(str(value).upper())
    if isinstance(value, (datetime, date)):
        if pd.isna(value):
            return RawCell.empty()
        return RawCell.date(value, value.strftime(Config.DISPLAY_DATE_FORMAT))
    if isinstance(value, numbers.Number):
        if isinstance(value, float) and math.isnan(value):
            return RawCell.empty()
        return RawCell.number(value, format_number(value, number_format))
    if isinstance(value, str):
        return RawCell.text(value)
    return RawCell.text(str(value))


def pad_grid(rows: List[List[RawCell]]) -> RawGrid:
    width = max((len(r) for r in rows), default=0)
    return [r + [RawCell.empty()] * (width - len(r)) for r in rows]


class BaseParser(ABC):
    @abstractmethod
    def parse(self, data: bytes, file_name: str) -> RawGrid:
        pass

    def _frame_to_grid(self, df: pd.DataFrame) -> RawGrid:
        rows = [[cell_from_value(v) for v in row] for row in df.itertuples(index=False, name=None)]
        return pad_grid(rows)


class XlsxParser(BaseParser):
    def parse(self, data: bytes, file_name: str) -> RawGrid:
        logger.info(f"Reading XLSX workbook: {file_name}")
        try:
            wb = openpyxl.load_workbook(io.BytesIO(data), data_only=True)
        except Exception as e:
            raise UnreadableWorkbookError(file_name, str(e)) from e

        if not wb.worksheets:
            return []
        ws = wb.worksheets[0]
        rows = []
        for row in ws.iter_rows():
            # merged cells carry no value or format of their own
            rows.append([
                cell_from_value(cell.value, getattr(cell, "number_format", "General"))
                for cell in row
            ])
        wb.close()
        return pad_grid(rows)


class XlsParser(BaseParser):
    def parse(self, data: bytes, file_name: str) -> RawGrid:
        logger.info(f"Reading XLS workbook: {file_name}")
        try:
            df = pd.read_excel(io.BytesIO(data), sheet_name=0, header=None, dtype=object, engine="xlrd")
        except Exception as e:
            raise UnreadableWorkbookError(file_name, str(e)) from e
        return self._frame_to_grid(df)


class CSVParser(BaseParser):
    def parse(self, data: bytes, file_name: str) -> RawGrid:
        logger.info(f"Reading CSV file: {file_name}")
        if b"\x00" in data:
            raise UnreadableWorkbookError(file_name, "binary content in CSV file")

        text = self._decode(data, file_name)
        if not text.strip():
            return []

        delimiter = self._sniff_delimiter(text)
        try:
            # Title and footer rows are narrower than the table; size the frame
            # to the widest row so pandas does not reject the ragged lines.
            width = max((len(r) for r in csv.reader(io.StringIO(text), delimiter=delimiter)), default=0)
            if width == 0:
                return []
            df = pd.read_csv(
                io.StringIO(text),
                sep=delimiter,
                header=None,
                names=list(range(width)),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=False,
                engine="python",
            )
        except Exception as e:
            raise UnreadableWorkbookError(file_name, str(e)) from e
        return self._frame_to_grid(df)

    def _decode(self, data: bytes, file_name: str) -> str:
        for encoding in Config.CSV_ENCODINGS:
            try:
                text = data.decode(encoding)
                logger.debug(f"Decoded CSV with {encoding} encoding")
                return text
            except UnicodeDecodeError:
                continue
        raise UnreadableWorkbookError(file_name, f"could not decode CSV with any of: {Config.CSV_ENCODINGS}")

    def _sniff_delimiter(self, text: str) -> str:
        sample = "\n".join(text.splitlines()[:50])
        try:
            return csv.Sniffer().sniff(sample, delimiters=Config.CSV_DELIMITERS).delimiter
        except csv.Error:
            # Title rows defeat the sniffer's consistency test
            best = max(Config.CSV_DELIMITERS, key=sample.count)
            return best if sample.count(best) else ","


class ParserFactory:
    @staticmethod
    def get_parser(file_type: str, data: Optional[bytes] = None) -> BaseParser:
        ft = (file_type or "").lower().lstrip('.')
        if ft not in Config.ALLOWED_EXTENSIONS:
            raise UnsupportedExtensionError(ft)

        # Bank portals often label one format with another's extension,
        # including plain delimited text saved as .xls
        if data is not None and ft in ('xlsx', 'xls'):
            if data.startswith(_OLE2_MAGIC) or data.startswith(_BIFF_BOF):
                ft = 'xls'
            elif data.startswith(_ZIP_MAGIC):
                ft = 'xlsx'
            else:
                logger.info(f"No spreadsheet signature in .{ft} payload, reading it as delimited text")
                ft = 'csv'

        if ft == 'xlsx':
            return XlsxParser()
        elif ft == 'xls':
            return XlsParser()
        return CSVParser()


def load_workbook(data: bytes, file_name: str) -> RawGrid:
    """Decode raw file bytes into a rectangular grid of tagged cells."""
    parser = ParserFactory.get_parser(file_extension(file_name), data)
    grid = parser.parse(data, file_name)
    logger.info(f"Loaded {len(grid)} rows from {file_name}")
    return grid
