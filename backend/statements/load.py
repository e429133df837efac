"""
Load Layer - Export of a parsed statement for review and download.

Generates:
1. Transactions sheet - normalized rows with debit/credit/balance
2. Statement Summary sheet - period, totals, balances and reconciliation
3. Skipped Rows sheet - rows dropped during parsing, with reasons
"""
from io import BytesIO
from typing import Any, List

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils import get_column_letter

from .models import StatementResult

TRANSACTION_HEADERS = ["Date", "Value Date", "Description", "Reference", "Debit", "Credit", "Balance", "Type", "Row #"]


class StatementExporter:
    """
    Exporter for parsed statements.
    Supported: 'xlsx', 'csv'
    """

    def __init__(self):
        self.currency_format = '#,##0.00'
        self.date_format = 'DD/MM/YYYY'
        self.header_font = Font(bold=True, color="FFFFFF")
        self.header_fill = PatternFill(start_color="2D5016", end_color="2D5016", fill_type="solid")
        self.warning_fill = PatternFill(start_color="FEE2E2", end_color="FEE2E2", fill_type="solid")
        self.success_fill = PatternFill(start_color="DCFCE7", end_color="DCFCE7", fill_type="solid")
        self.border = Border(bottom=Side(style='thin', color='DDDDDD'))

    def generate(self, result: StatementResult, target_format: str = "xlsx") -> BytesIO:
        if target_format == "csv":
            return self._generate_csv(result)
        elif target_format == "xlsx":
            return self._generate_excel(result)
        raise ValueError(f"Unsupported export format: {target_format}")

    def _transaction_rows(self, result: StatementResult) -> List[List[Any]]:
        return [
            [
                tx.transaction_date,
                tx.value_date,
                tx.description,
                tx.reference or "",
                float(tx.debit_amount),
                float(tx.credit_amount),
                float(tx.balance) if tx.balance is not None else None,
                tx.transaction_type.value,
                tx.source_row_number,
            ]
            for tx in result.transactions
        ]

    def _generate_excel(self, result: StatementResult) -> BytesIO:
        output = BytesIO()
        wb = Workbook()

        # ════════════════════════════════════════════════════════════════
        # SHEET 1: TRANSACTIONS
        # ════════════════════════════════════════════════════════════════
        ws1 = wb.active
        ws1.title = "Transactions"
        self._write_header(ws1, TRANSACTION_HEADERS)

        for row_idx, values in enumerate(self._transaction_rows(result), 2):
            for col_idx, val in enumerate(values, 1):
                cell = ws1.cell(row=row_idx, column=col_idx, value=val)
                if col_idx in [1, 2]:
                    cell.number_format = self.date_format
                elif col_idx in [5, 6, 7]:
                    cell.number_format = self.currency_format
                cell.border = self.border

        self._auto_width(ws1)
        ws1.freeze_panes = "A2"

        # ════════════════════════════════════════════════════════════════
        # SHEET 2: STATEMENT SUMMARY
        # ════════════════════════════════════════════════════════════════
        ws2 = wb.create_sheet("Statement Summary")
        statement = result.statement
        reconciliation = result.reconciliation or {}

        ws2.cell(row=1, column=1, value="STATEMENT SUMMARY").font = Font(bold=True, size=14)
        ws2.merge_cells('A1:B1')

        summary_items = [
            ("File", statement.file_name),
            ("Currency", statement.currency),
            ("Period Start", statement.period_start),
            ("Period End", statement.period_end),
            ("Opening Balance", _as_float(statement.opening_balance)),
            ("Total Credits (+)", float(statement.total_credits)),
            ("Total Debits (-)", float(statement.total_debits)),
            ("Closing Balance", _as_float(statement.closing_balance)),
            ("Transactions", statement.transaction_count),
            ("Skipped Rows", result.skipped_row_count),
        ]

        row = 3
        for key, val in summary_items:
            ws2.cell(row=row, column=1, value=key).font = Font(bold=True)
            c = ws2.cell(row=row, column=2, value=val)
            if isinstance(val, float):
                c.number_format = self.currency_format
            elif key.startswith("Period") and val is not None:
                c.number_format = self.date_format
            row += 1

        row += 1
        ws2.cell(row=row, column=1, value="RECONCILIATION CHECK").font = Font(bold=True, size=12)
        row += 1

        is_balanced = reconciliation.get("is_balanced")
        recon_items = [
            ("Opening + Credits - Debits =", reconciliation.get("expected_closing")),
            ("Actual Closing Balance =", reconciliation.get("actual_closing")),
            ("Balance Breaks", len(reconciliation.get("balance_breaks", []))),
            ("Status", reconciliation.get("status", "N/A")),
        ]

        for key, val in recon_items:
            ws2.cell(row=row, column=1, value=key).font = Font(bold=True)
            c = ws2.cell(row=row, column=2, value=val)
            if isinstance(val, float):
                c.number_format = self.currency_format
            if key == "Status" and is_balanced is not None:
                c.fill = self.success_fill if is_balanced else self.warning_fill
                c.font = Font(bold=True)
            row += 1

        self._auto_width(ws2)

        # ════════════════════════════════════════════════════════════════
        # SHEET 3: SKIPPED ROWS
        # ════════════════════════════════════════════════════════════════
        ws3 = wb.create_sheet("Skipped Rows")
        if result.skipped_rows:
            self._write_header(ws3, ["Row #", "Reason"])
            for row_idx, skipped in enumerate(result.skipped_rows, 2):
                ws3.cell(row=row_idx, column=1, value=skipped.row_number)
                ws3.cell(row=row_idx, column=2, value=skipped.reason.replace('_', ' '))
        else:
            ws3.cell(row=1, column=1, value="No rows were skipped").fill = self.success_fill
        self._auto_width(ws3)

        wb.save(output)
        output.seek(0)
        return output

    def _generate_csv(self, result: StatementResult) -> BytesIO:
        df = pd.DataFrame(self._transaction_rows(result), columns=TRANSACTION_HEADERS)
        for col in ["Date", "Value Date"]:
            df[col] = df[col].map(lambda d: d.isoformat() if d else "")
        output = BytesIO()
        df.to_csv(output, index=False)
        output.seek(0)
        return output

    def _write_header(self, ws, headers: List[str]) -> None:
        for col_idx, header in enumerate(headers, 1):
            cell = ws.cell(row=1, column=col_idx, value=header)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = Alignment(horizontal='center')

    def _auto_width(self, ws) -> None:
        """Auto-adjust column widths"""
        for col_idx, column in enumerate(ws.columns, 1):
            max_length = 0
            for cell in column:
                if cell.value is not None:
                    max_length = max(max_length, len(str(cell.value)))
            ws.column_dimensions[get_column_letter(col_idx)].width = min(max_length + 4, 60)


def _as_float(value):
    return float(value) if value is not None else None
