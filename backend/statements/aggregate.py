"""
Statement Aggregator - single left-to-right fold over emitted transactions.

Opening balance is the first balance seen in row order and closing balance
the last; no look-ahead is needed.
"""
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from functools import reduce
from typing import Iterable, Optional

from .config import Config
from .models import StatementSummary, TransactionRecord


@dataclass(frozen=True)
class StatementAccumulator:
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    opening_balance: Optional[Decimal] = None
    closing_balance: Optional[Decimal] = None
    total_debits: Decimal = Decimal("0")
    total_credits: Decimal = Decimal("0")
    transaction_count: int = 0
    debit_count: int = 0
    credit_count: int = 0


def fold_transaction(acc: StatementAccumulator, tx: TransactionRecord) -> StatementAccumulator:
    d = tx.transaction_date
    acc = replace(
        acc,
        period_start=d if acc.period_start is None or d < acc.period_start else acc.period_start,
        period_end=d if acc.period_end is None or d > acc.period_end else acc.period_end,
        total_debits=acc.total_debits + tx.debit_amount,
        total_credits=acc.total_credits + tx.credit_amount,
        transaction_count=acc.transaction_count + 1,
        debit_count=acc.debit_count + (1 if tx.debit_amount > 0 else 0),
        credit_count=acc.credit_count + (1 if tx.credit_amount > 0 else 0),
    )
    if tx.balance is not None:
        acc = replace(
            acc,
            opening_balance=tx.balance if acc.opening_balance is None else acc.opening_balance,
            closing_balance=tx.balance,
        )
    return acc


def summarize(transactions: Iterable[TransactionRecord],
              currency: str = Config.DEFAULT_CURRENCY,
              file_name: str = "") -> StatementSummary:
    acc = reduce(fold_transaction, transactions, StatementAccumulator())
    return StatementSummary(
        period_start=acc.period_start,
        period_end=acc.period_end,
        opening_balance=acc.opening_balance,
        closing_balance=acc.closing_balance,
        total_debits=acc.total_debits,
        total_credits=acc.total_credits,
        transaction_count=acc.transaction_count,
        debit_count=acc.debit_count,
        credit_count=acc.credit_count,
        currency=currency,
        file_name=file_name,
    )
