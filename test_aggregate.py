"""Statement aggregator tests"""
from datetime import date
from decimal import Decimal

from backend.statements.aggregate import StatementAccumulator, fold_transaction, summarize
from backend.statements.models import TransactionRecord, TransactionType


def _tx(d, debit="0", credit="0", balance=None, row=2):
    debit, credit = Decimal(debit), Decimal(credit)
    return TransactionRecord(
        transaction_date=d,
        description="x",
        debit_amount=debit,
        credit_amount=credit,
        balance=Decimal(balance) if balance is not None else None,
        transaction_type=TransactionType.DEBIT if debit > 0 else TransactionType.CREDIT,
        source_row_number=row,
    )


def test_summary_totals_and_period():
    txs = [
        _tx(date(2024, 1, 5), debit="100.50", balance="899.50"),
        _tx(date(2024, 1, 2), credit="250", balance="1149.50"),
        _tx(date(2024, 1, 9), debit="49.50", credit="10", balance="1110.00"),
    ]
    summary = summarize(txs, currency="USD", file_name="jan.csv")

    assert summary.period_start == date(2024, 1, 2)
    assert summary.period_end == date(2024, 1, 9)
    assert summary.total_debits == Decimal("150.00")
    assert summary.total_credits == Decimal("260")
    assert summary.transaction_count == 3
    assert summary.debit_count == 2
    assert summary.credit_count == 2
    assert summary.currency == "USD"
    assert summary.file_name == "jan.csv"


def test_opening_and_closing_follow_row_order():
    txs = [
        _tx(date(2024, 1, 1), debit="5"),
        _tx(date(2024, 1, 3), credit="10", balance="510"),
        _tx(date(2024, 1, 2), debit="20", balance="490"),
        _tx(date(2024, 1, 4), debit="1"),
    ]
    summary = summarize(txs)
    # row order, not date order
    assert summary.opening_balance == Decimal("510")
    assert summary.closing_balance == Decimal("490")


def test_no_balances():
    summary = summarize([_tx(date(2024, 1, 1), debit="5")])
    assert summary.opening_balance is None
    assert summary.closing_balance is None


def test_empty_statement():
    summary = summarize([])
    assert summary.transaction_count == 0
    assert summary.period_start is None
    assert summary.period_end is None
    assert summary.total_debits == 0
    assert summary.total_credits == 0
    assert summary.currency == "INR"


def test_fold_returns_new_accumulator():
    start = StatementAccumulator()
    acc = fold_transaction(start, _tx(date(2024, 1, 1), credit="7", balance="7"))
    assert start.transaction_count == 0
    assert acc.transaction_count == 1
    assert acc.opening_balance == acc.closing_balance == Decimal("7")
