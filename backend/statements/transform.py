"""
Transform Layer - Row normalization for located statement tables.

This module implements:
1. Date parsing (spreadsheet serials, explicit formats)
2. Amount parsing (currency symbols, separators, parenthesised negatives)
3. Description assembly from every text-bearing column
4. Transaction type detection (debit/credit/both)
5. Lenient row inclusion with per-row skip reasons
"""
import logging
import re
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Sequence, Tuple

from .config import Config
from .models import (
    CellKind, ColumnMapping, ColumnRole, ParseOptions, RawCell, RawGrid,
    SkippedRow, TransactionRecord, TransactionType,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
SERIAL_EPOCH = date(*Config.SERIAL_DATE_EPOCH)

_RE_CURRENCY = re.compile(r'[₹$€£¥]|\b(?:rs|inr|usd|eur|gbp)\b\.?', re.I)
_RE_SEPARATORS = re.compile(r'[,\s]')
_RE_PARENS = re.compile(r'^\((.*)\)$')
_RE_ALPHA = re.compile(r'[A-Za-z]')
_RE_DR_CR_TAG = re.compile(r'\s*(dr|cr)\.?\s*$', re.I)
_RE_PURE_NUMBER = re.compile(r'^[\d.,\s-]+$')


# ─────────────────────────────────────────────────────────────
# Dates
# ─────────────────────────────────────────────────────────────

def _plausible(d: date) -> bool:
    return Config.MIN_YEAR < d.year < Config.MAX_YEAR


def serial_to_date(serial: float) -> Optional[date]:
    """Convert a spreadsheet serial day count; None outside the plausible range."""
    if not (Config.SERIAL_DATE_MIN < serial < Config.SERIAL_DATE_MAX):
        return None
    return SERIAL_EPOCH + timedelta(days=int(serial))


def parse_date_text(text: str) -> Optional[date]:
    text = text.strip()
    if not text:
        return None

    try:
        serial = float(text)
    except ValueError:
        serial = None
    if serial is not None:
        return serial_to_date(serial)

    candidates = [text]
    head = text.split()[0]
    if head != text:
        # "02/01/2024 10:15:00" and similar date-time exports
        candidates.append(head)

    for candidate in candidates:
        for fmt in Config.DATE_FORMATS:
            try:
                parsed = datetime.strptime(candidate, fmt).date()
            except ValueError:
                continue
            if _plausible(parsed):
                return parsed
    return None


def parse_date(cell: RawCell) -> Optional[date]:
    if cell.kind == CellKind.DATE:
        value = cell.value
        parsed = value.date() if isinstance(value, datetime) else value
        return parsed if _plausible(parsed) else None
    elif cell.kind == CellKind.NUMBER:
        return serial_to_date(float(cell.value))
    elif cell.kind == CellKind.TEXT:
        return parse_date_text(str(cell.value))
    return None


# ─────────────────────────────────────────────────────────────
# Amounts
# ─────────────────────────────────────────────────────────────

def parse_amount_text(text: str) -> Optional[Decimal]:
    """
    Parse a formatted amount string; None when the text is not a number.

    "(1,234.50)" -> Decimal("-1234.50"), "₹ 500" -> Decimal("500").
    """
    cleaned = _RE_CURRENCY.sub('', text)
    cleaned = _RE_SEPARATORS.sub('', cleaned)

    negative = False
    match = _RE_PARENS.match(cleaned)
    if match:
        negative = True
        cleaned = match.group(1)

    if not cleaned or _RE_ALPHA.search(cleaned):
        return None
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    return -value if negative else value


def parse_amount(cell: RawCell) -> Optional[Decimal]:
    if cell.kind == CellKind.NUMBER:
        value = Decimal(str(cell.value))
        return None if value.is_nan() else value
    elif cell.kind == CellKind.TEXT:
        return parse_amount_text(str(cell.value))
    # dates and blanks are never amounts
    return None


def parse_signed_amount(cell: RawCell) -> Optional[Decimal]:
    """Single amount column: trailing Dr/Cr tags override the sign."""
    if cell.kind != CellKind.TEXT:
        return parse_amount(cell)
    text = str(cell.value).strip()
    tag = _RE_DR_CR_TAG.search(text)
    value = parse_amount_text(_RE_DR_CR_TAG.sub('', text) if tag else text)
    if value is None or not tag:
        return value
    return -abs(value) if tag.group(1).lower() == 'dr' else abs(value)


# ─────────────────────────────────────────────────────────────
# Row Normalizer
# ─────────────────────────────────────────────────────────────

def is_text_fragment(value: str) -> bool:
    return '/' in value or bool(_RE_ALPHA.search(value)) or not _RE_PURE_NUMBER.match(value)


def classify_type(debit: Decimal, credit: Decimal, debit_cell: RawCell, credit_cell: RawCell) -> TransactionType:
    if debit > 0 and credit > 0:
        return TransactionType.BOTH
    if debit > 0:
        return TransactionType.DEBIT
    if credit > 0:
        return TransactionType.CREDIT
    # Zero-amount rows follow whichever side was filled in
    if not debit_cell.is_blank and credit_cell.is_blank:
        return TransactionType.DEBIT
    return TransactionType.CREDIT


class RowNormalizer:
    """
    Turns the data rows under a located header into TransactionRecords.

    One instance serves one parse call; it holds the mapping and options
    but no per-row state.
    """

    def __init__(self, mapping: ColumnMapping, options: Optional[ParseOptions] = None):
        self.mapping = mapping
        self.options = options or ParseOptions()
        self.date_col = mapping.index_of(ColumnRole.TRANSACTION_DATE)
        self.value_date_col = mapping.index_of(ColumnRole.VALUE_DATE)
        self.desc_col = mapping.index_of(ColumnRole.DESCRIPTION)
        self.ref_col = mapping.index_of(ColumnRole.REFERENCE)
        self.debit_col = mapping.index_of(ColumnRole.DEBIT)
        self.credit_col = mapping.index_of(ColumnRole.CREDIT)
        self.balance_col = mapping.index_of(ColumnRole.BALANCE)
        self.amount_col = mapping.index_of(ColumnRole.AMOUNT)
        self.description_sources = mapping.description_sources()
        # header row text as printed, for spotting the header repeated on later pages
        self.header_text = [h.lower() for h in mapping.headers]

    def normalize(self, grid: RawGrid, header_row_index: int) -> Tuple[List[TransactionRecord], List[SkippedRow]]:
        """
        Walk every row below the header.

        Returns:
            Tuple of (transactions in row order, skipped rows with reasons)
        """
        transactions = []
        skipped = []
        if header_row_index < len(grid):
            self.header_text = [cell.display.strip().lower() for cell in grid[header_row_index]]
        for i in range(header_row_index + 1, len(grid)):
            row_number = i + 1
            tx, reason = self.normalize_row(grid[i], row_number)
            if tx is None:
                logger.debug(f"Row {row_number} skipped: {reason}")
                skipped.append(SkippedRow(row_number, reason))
            else:
                transactions.append(tx)
        return transactions, skipped

    def normalize_row(self, row: Sequence[RawCell], row_number: int) -> Tuple[Optional[TransactionRecord], str]:
        if all(cell.is_blank for cell in row):
            return None, "blank"
        if self._repeats_header(row):
            return None, "repeated_header"

        date_cell = self._cell(row, self.date_col)
        debit_cell = self._cell(row, self.debit_col)
        credit_cell = self._cell(row, self.credit_col)
        balance_cell = self._cell(row, self.balance_col)

        debit, credit = self._amounts(row, row_number, debit_cell, credit_cell)
        balance = parse_amount(balance_cell)
        description = self._description(row)

        has_date = not date_cell.is_blank
        has_amounts = debit != 0 or credit != 0
        has_description = bool(description)
        if not (has_date or has_amounts or has_description):
            return None, "no_content"

        tx_date = parse_date(date_cell)
        date_inferred = False
        if tx_date is None:
            if self.options.strict_dates or not (has_amounts or has_description):
                return None, "unparseable_date"
            logger.warning(f"No valid date found for row {row_number}, using ingestion date")
            tx_date = self.options.ingestion_date
            date_inferred = True

        value_date = tx_date
        value_cell = self._cell(row, self.value_date_col)
        if not value_cell.is_blank and value_cell.display != date_cell.display:
            value_date = parse_date(value_cell) or tx_date

        reference_cell = self._cell(row, self.ref_col)
        reference = reference_cell.display if not reference_cell.is_blank else None

        tx = TransactionRecord(
            transaction_date=tx_date,
            value_date=value_date,
            description=description or Config.DEFAULT_DESCRIPTION,
            reference=reference,
            debit_amount=debit,
            credit_amount=credit,
            balance=balance,
            transaction_type=classify_type(debit, credit, debit_cell, credit_cell),
            raw_fields=self._raw_fields(row),
            source_row_number=row_number,
            date_inferred=date_inferred,
        )
        return tx, ""

    # ─────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────

    def _cell(self, row: Sequence[RawCell], idx: Optional[int]) -> RawCell:
        if idx is None or idx >= len(row):
            return RawCell.empty()
        return row[idx]

    def _repeats_header(self, row: Sequence[RawCell]) -> bool:
        labels = [cell.display.strip().lower() for cell in row]
        non_blank = [(label, h) for label, h in zip(labels, self.header_text) if label]
        return len(non_blank) >= 2 and all(label == h for label, h in non_blank)

    def _amounts(self, row, row_number, debit_cell, credit_cell) -> Tuple[Decimal, Decimal]:
        debit = self._magnitude(debit_cell, row_number, "Debit")
        credit = self._magnitude(credit_cell, row_number, "Credit")

        if debit == 0 and credit == 0 and self.amount_col is not None:
            signed = parse_signed_amount(self._cell(row, self.amount_col))
            if signed is not None and signed < 0:
                debit = -signed
            elif signed is not None:
                credit = signed
        return debit, credit

    def _magnitude(self, cell: RawCell, row_number: int, label: str) -> Decimal:
        if cell.is_blank:
            return ZERO
        value = parse_amount(cell)
        if value is None:
            logger.debug(f"Row {row_number}: {label} cell is not numeric, ignoring {cell.display!r}")
            return ZERO
        return abs(value)

    def _description(self, row: Sequence[RawCell]) -> str:
        parts = []
        for idx in self.description_sources:
            cell = self._cell(row, idx)
            if cell.is_blank:
                continue
            value = cell.display.strip()
            if not is_text_fragment(value):
                continue
            if self.mapping.is_description_like(idx) or len(value) > 3:
                parts.append(value)
        if parts:
            return '/'.join(parts)
        # a purely numeric narration is kept only when nothing else describes the row
        desc_cell = self._cell(row, self.desc_col)
        return desc_cell.display.strip() if not desc_cell.is_blank else ""

    def _raw_fields(self, row: Sequence[RawCell]) -> Dict[str, str]:
        return {
            header: row[idx].display
            for idx, header in enumerate(self.mapping.headers)
            if idx < len(row) and not row[idx].is_blank
        }
