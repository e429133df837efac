"""
Statement Pipeline Orchestrator - Load, locate, classify, normalize, aggregate.

Flow: Load → Header → Columns → Rows → Aggregate → Reconcile

Each call is independent: nothing is cached between files, so separate
uploads may be parsed concurrently.
"""
import logging
import time
from typing import Iterator, Optional, Tuple

from .aggregate import summarize
from .columns import classify_columns
from .config import Config
from .dq import ReconciliationEngine
from .extract import document_hash, file_extension, load_workbook
from .errors import UnsupportedExtensionError
from .header import locate_header
from .models import ParseOptions, StatementResult
from .transform import RowNormalizer

logger = logging.getLogger(__name__)

Progress = Tuple[int, str, Optional[StatementResult]]


class StatementPipeline:
    """
    Bank statement ingestion pipeline.
    """

    def __init__(self):
        self.reconciler = ReconciliationEngine()

    def process(self, file_bytes: bytes, filename: str,
                options: Optional[ParseOptions] = None) -> Iterator[Progress]:
        """
        Parse one statement file.
        Yields (percentage, message, result); result is set on the final yield only.

        Raises:
            UnsupportedExtensionError: extension is not xlsx, xls or csv
            UnreadableWorkbookError: the bytes are not a readable spreadsheet
        """
        options = options or ParseOptions()
        start_time = time.time()

        extension = file_extension(filename)
        if extension not in Config.ALLOWED_EXTENSIONS:
            raise UnsupportedExtensionError(extension)

        # ─── 1. Load (0-20%) ───
        yield 10, "Reading workbook...", None
        grid = load_workbook(file_bytes, filename)
        yield 20, f"Read {len(grid)} rows.", None

        # ─── 2. Header (20-30%) ───
        header = locate_header(grid)
        yield 30, f"Header row at index {header.row_index}.", None

        # ─── 3. Columns (30-45%) ───
        samples = grid[header.row_index + 1:header.row_index + 1 + Config.VALIDATION_SAMPLE_ROWS]
        mapping = classify_columns(header.labels, samples)
        yield 45, "Columns classified.", None

        # ─── 4. Rows (45-80%) ───
        normalizer = RowNormalizer(mapping, options)
        transactions, skipped = normalizer.normalize(grid, header.row_index)
        yield 80, f"Found {len(transactions)} transactions, skipped {len(skipped)} rows.", None

        # ─── 5. Aggregate & Reconcile (80-100%) ───
        statement = summarize(transactions, currency=options.default_currency, file_name=filename)
        reconciliation = self.reconciler.check(transactions, statement)
        if reconciliation["is_balanced"] is False:
            logger.warning(f"Statement {filename} does not reconcile: {reconciliation['failure_reason']}")

        result = StatementResult(
            statement=statement,
            transactions=transactions,
            skipped_rows=skipped,
            header_row_index=header.row_index,
            column_mapping=mapping,
            document_hash=document_hash(file_bytes),
            reconciliation=reconciliation,
        )

        processing_time = (time.time() - start_time) * 1000
        logger.info(
            f"Parsing complete for {filename}: {len(transactions)} transactions, "
            f"{len(skipped)} skipped rows, header row {header.row_index} ({processing_time:.0f} ms)"
        )
        yield 100, "Done", result


def parse_statement(file_bytes: bytes, filename: str,
                    options: Optional[ParseOptions] = None) -> StatementResult:
    """
    Parse a bank statement export into a summary and its transactions.

    Raises UnsupportedExtensionError or UnreadableWorkbookError; every
    other irregularity degrades to a best-effort result.
    """
    result = None
    for _, _, r in StatementPipeline().process(file_bytes, filename, options):
        if r is not None:
            result = r
    return result
