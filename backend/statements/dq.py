"""
Reconciliation Check - opening + credits - debits against closing balance.

The opening balance is the balance printed on the first balance-carrying
row, which already includes that row's own movement. Only movements on
later rows count toward the expected closing balance.

The check reports; it never rejects or alters transactions.
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .config import Config
from .models import StatementSummary, TransactionRecord


class ReconciliationEngine:
    """
    Deterministic reconciliation of a parsed statement.
    """

    def __init__(self, tolerance: Optional[Decimal] = None):
        self.tolerance = tolerance if tolerance is not None else Decimal(Config.BALANCE_TOLERANCE)

    def check(self, transactions: List[TransactionRecord], summary: StatementSummary) -> Dict[str, Any]:
        opening = summary.opening_balance
        closing = summary.closing_balance

        if opening is None or closing is None:
            return {
                "opening_balance": None,
                "total_credits": float(summary.total_credits),
                "total_debits": float(summary.total_debits),
                "expected_closing": None,
                "actual_closing": None,
                "delta": None,
                "is_balanced": None,
                "status": "N/A",
                "failure_reason": "Missing balance information in statement",
                "balance_breaks": [],
            }

        credits = Decimal("0")
        debits = Decimal("0")
        seen_opening = False
        for tx in transactions:
            if not seen_opening:
                seen_opening = tx.balance is not None
                continue
            credits += tx.credit_amount
            debits += tx.debit_amount

        expected = opening + credits - debits
        delta = abs(expected - closing)
        is_balanced = delta < self.tolerance

        if is_balanced:
            failure_reason = None
        elif delta > 1000:
            failure_reason = "Large discrepancy - possible missing transactions"
        else:
            failure_reason = f"Small mismatch ({delta:.2f}) - rounding or fees"

        return {
            "opening_balance": float(opening),
            "total_credits": float(credits),
            "total_debits": float(debits),
            "expected_closing": float(round(expected, 2)),
            "actual_closing": float(closing),
            "delta": float(round(delta, 2)),
            "is_balanced": is_balanced,
            "status": "Balanced" if is_balanced else f"Mismatch ({delta:.2f})",
            "failure_reason": failure_reason,
            "balance_breaks": self.balance_breaks(transactions),
        }

    def balance_breaks(self, transactions: List[TransactionRecord]) -> List[Dict[str, Any]]:
        """Rows whose balance does not follow from the previous balance and this row's movement."""
        breaks = []
        previous = None
        pending = Decimal("0")  # movement on rows without a printed balance
        for tx in transactions:
            movement = tx.credit_amount - tx.debit_amount
            if tx.balance is None:
                pending += movement
                continue
            if previous is not None:
                expected = previous + pending + movement
                if abs(expected - tx.balance) >= self.tolerance:
                    breaks.append({
                        "row": tx.source_row_number,
                        "expected_balance": float(round(expected, 2)),
                        "actual_balance": float(tx.balance),
                    })
            previous = tx.balance
            pending = Decimal("0")
        return breaks
