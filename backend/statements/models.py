from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, List, Dict, Any, Set

from .config import Config
from .schema import TransactionRow, StatementRow, StatementPayload


class CellKind(str, Enum):
    NUMBER = "number"
    TEXT = "text"
    DATE = "date"
    EMPTY = "empty"


@dataclass(frozen=True)
class RawCell:
    """
    One spreadsheet cell as read by the loader.

    `value` holds the raw value for calculation (a number, a string or a
    datetime, None when empty); `display` is the formatted string a user
    would see in the spreadsheet.
    """
    kind: CellKind
    value: Any = None
    display: str = ""

    @classmethod
    def empty(cls) -> "RawCell":
        return cls(CellKind.EMPTY)

    @classmethod
    def text(cls, value: str) -> "RawCell":
        if not value.strip():
            return cls.empty()
        return cls(CellKind.TEXT, value, value.strip())

    @classmethod
    def number(cls, value, display: str) -> "RawCell":
        return cls(CellKind.NUMBER, value, display)

    @classmethod
    def date(cls, value, display: str) -> "RawCell":
        return cls(CellKind.DATE, value, display)

    @property
    def is_blank(self) -> bool:
        return self.kind == CellKind.EMPTY


RawGrid = List[List[RawCell]]


class ColumnRole(str, Enum):
    TRANSACTION_DATE = "transaction_date"
    VALUE_DATE = "value_date"
    DESCRIPTION = "description"
    REFERENCE = "reference"
    DEBIT = "debit"
    CREDIT = "credit"
    BALANCE = "balance"
    AMOUNT = "amount"
    UNKNOWN = "unknown"


DATE_ROLES = {ColumnRole.TRANSACTION_DATE, ColumnRole.VALUE_DATE}
AMOUNT_ROLES = {ColumnRole.DEBIT, ColumnRole.CREDIT, ColumnRole.BALANCE, ColumnRole.AMOUNT}


@dataclass
class ColumnMapping:
    """
    Result of column classification.

    label_roles is what each header label suggested on its own; roles is
    the final assignment after de-duplication and sample validation.
    """
    headers: List[str]
    label_roles: Dict[int, ColumnRole]
    roles: Dict[int, ColumnRole]
    revoked: Set[int] = field(default_factory=set)

    def index_of(self, role: ColumnRole) -> Optional[int]:
        for idx in range(len(self.headers)):
            if self.roles.get(idx) == role:
                return idx
        return None

    def description_sources(self) -> List[int]:
        """Columns whose values may contribute to the assembled description."""
        sources = []
        for idx in range(len(self.headers)):
            role = self.roles.get(idx, ColumnRole.UNKNOWN)
            label_role = self.label_roles.get(idx, ColumnRole.UNKNOWN)
            if role == ColumnRole.DESCRIPTION or idx in self.revoked:
                sources.append(idx)
            elif role == ColumnRole.UNKNOWN and label_role in (ColumnRole.UNKNOWN, ColumnRole.DESCRIPTION):
                sources.append(idx)
        return sources

    def is_description_like(self, idx: int) -> bool:
        return self.roles.get(idx) == ColumnRole.DESCRIPTION or idx in self.revoked

    def describe(self) -> Dict[str, str]:
        return {header: self.roles.get(idx, ColumnRole.UNKNOWN).value
                for idx, header in enumerate(self.headers)}


class TransactionType(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"
    BOTH = "both"


@dataclass
class TransactionRecord:
    transaction_date: date
    description: str
    debit_amount: Decimal
    credit_amount: Decimal
    transaction_type: TransactionType
    source_row_number: int
    value_date: Optional[date] = None
    reference: Optional[str] = None
    balance: Optional[Decimal] = None
    raw_fields: Dict[str, str] = field(default_factory=dict)
    date_inferred: bool = False

    def __post_init__(self):
        if self.value_date is None:
            self.value_date = self.transaction_date

    def to_dict(self) -> TransactionRow:
        return {
            "transaction_date": self.transaction_date.isoformat(),
            "value_date": self.value_date.isoformat() if self.value_date else None,
            "description": self.description,
            "reference_number": self.reference,
            "debit_amount": float(self.debit_amount),
            "credit_amount": float(self.credit_amount),
            "balance": float(self.balance) if self.balance is not None else None,
            "transaction_type": self.transaction_type.value,
            "metadata": {
                "row_number": self.source_row_number,
                "original_data": dict(self.raw_fields),
                "date_inferred": self.date_inferred,
            },
        }


@dataclass
class StatementSummary:
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    opening_balance: Optional[Decimal] = None
    closing_balance: Optional[Decimal] = None
    total_debits: Decimal = Decimal("0")
    total_credits: Decimal = Decimal("0")
    transaction_count: int = 0
    debit_count: int = 0
    credit_count: int = 0
    currency: str = Config.DEFAULT_CURRENCY
    file_name: str = ""

    def to_dict(self) -> StatementRow:
        return {
            "file_name": self.file_name,
            "statement_period_start": self.period_start.isoformat() if self.period_start else None,
            "statement_period_end": self.period_end.isoformat() if self.period_end else None,
            "opening_balance": _optional_float(self.opening_balance),
            "closing_balance": _optional_float(self.closing_balance),
            "total_debits": float(self.total_debits),
            "total_credits": float(self.total_credits),
            "currency": self.currency,
            "metadata": {
                "total_transactions": self.transaction_count,
                "debit_count": self.debit_count,
                "credit_count": self.credit_count,
            },
        }


@dataclass(frozen=True)
class SkippedRow:
    row_number: int
    reason: str


@dataclass
class ParseOptions:
    default_currency: str = Config.DEFAULT_CURRENCY
    # Drop rows whose date cannot be parsed instead of stamping them
    # with the ingestion date.
    strict_dates: bool = False
    ingestion_date: date = field(default_factory=date.today)


@dataclass
class StatementResult:
    statement: StatementSummary
    transactions: List[TransactionRecord]
    skipped_rows: List[SkippedRow]
    header_row_index: int
    column_mapping: ColumnMapping
    document_hash: str
    reconciliation: Dict[str, Any] = field(default_factory=dict)

    @property
    def skipped_row_count(self) -> int:
        return len(self.skipped_rows)

    def to_dict(self) -> StatementPayload:
        statement = self.statement.to_dict()
        statement["metadata"]["document_hash"] = self.document_hash
        statement["metadata"]["skipped_rows"] = self.skipped_row_count
        return {
            "statement": statement,
            "transactions": [tx.to_dict() for tx in self.transactions],
        }


def _optional_float(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None
