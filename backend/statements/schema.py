"""
Persistence payload schema - TypedDicts for the rows handed to storage.

StatementResult.to_dict() produces exactly these shapes: one StatementRow
and a batch of TransactionRow records tied to it.
"""
from typing import TypedDict, Dict, Optional, List


class TransactionRowMetadata(TypedDict):
    """Audit metadata for each transaction"""
    row_number: int                    # 1-based row in the source sheet
    original_data: Dict[str, str]      # header -> display string
    date_inferred: bool                # ingestion date used as placeholder


class TransactionRow(TypedDict):
    transaction_date: str              # ISO 8601 date
    value_date: Optional[str]          # ISO 8601 date
    description: str                   # never empty
    reference_number: Optional[str]
    debit_amount: float                # >= 0
    credit_amount: float               # >= 0
    balance: Optional[float]           # may be negative
    transaction_type: str              # 'debit' | 'credit' | 'both'
    metadata: TransactionRowMetadata


class StatementRowMetadata(TypedDict, total=False):
    total_transactions: int
    debit_count: int
    credit_count: int
    document_hash: str                 # SHA256 of source bytes
    skipped_rows: int


class StatementRow(TypedDict):
    file_name: str
    statement_period_start: Optional[str]
    statement_period_end: Optional[str]
    opening_balance: Optional[float]
    closing_balance: Optional[float]
    total_debits: float
    total_credits: float
    currency: str
    metadata: StatementRowMetadata


class StatementPayload(TypedDict):
    """Batch handed to the persistence layer"""
    statement: StatementRow
    transactions: List[TransactionRow]

