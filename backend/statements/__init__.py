"""
Statements Package - Bank statement spreadsheet ingestion and normalization

Modules:
- extract: xlsx/xls/csv bytes to a grid of tagged cells
- header: header row location
- columns: two-phase column role inference
- transform: row normalization (dates, amounts, descriptions)
- aggregate: statement summary fold
- dq: reconciliation check
- load: xlsx/csv export of a parsed statement
- pipeline: main orchestrator
- models/schema: data model and persistence payload shapes
"""
from .errors import StatementIngestError, UnreadableWorkbookError, UnsupportedExtensionError
from .models import (
    CellKind, ColumnMapping, ColumnRole, ParseOptions, RawCell, SkippedRow,
    StatementResult, StatementSummary, TransactionRecord, TransactionType,
)
from .pipeline import StatementPipeline, parse_statement

__all__ = [
    'parse_statement', 'StatementPipeline', 'ParseOptions', 'StatementResult',
    'StatementSummary', 'TransactionRecord', 'TransactionType', 'SkippedRow',
    'ColumnMapping', 'ColumnRole', 'RawCell', 'CellKind',
    'StatementIngestError', 'UnreadableWorkbookError', 'UnsupportedExtensionError',
]
