"""Period summaries: income, expenses and ratios with a previous-period comparison.

:func:`summarize` is a pure fold over the transactions it is given: it does
not mutate them and identical arguments always produce an identical
:class:`~finance_core.models.FinancialSummary`.  The remaining helpers are
the small aggregations used by the dashboard tables.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from .config import EngineConfig, get_config
from .frames import expense_total, income_total, transactions_frame, window
from .models import (
    Account,
    CustomDateRange,
    FinancialSummary,
    TimePeriod,
    Transaction,
    percent_change,
)
from .periods import resolve_with_previous

logger = logging.getLogger(__name__)

CATEGORY_SPENDING_COLUMNS = ['Total_Spent', 'Transaction_Count', 'Avg_Transaction']

period_change = percent_change


def accounts_balance(accounts: Iterable[Account]) -> float:
    """Sum of the balance snapshots of ``accounts``."""
    return round(sum(account.balance for account in accounts), 2)


def savings_rate(income: float, expenses: float, *, clamp: bool = True) -> float:
    """``(income - expenses) / income``, zero when there is no income."""
    rate = (income - expenses) / income if income > 0 else 0.0
    return max(0.0, rate) if clamp else rate


def summarize(
    transactions: Iterable[Transaction],
    period: TimePeriod | str,
    custom_range: Optional[CustomDateRange] = None,
    total_balance: float = 0.0,
    *,
    reference_date: Optional[datetime] = None,
    config: Optional[EngineConfig] = None,
) -> FinancialSummary:
    """Summarise ``transactions`` over the selected period.

    Args:
        transactions: Ledger to aggregate; only rows inside the resolved
            windows contribute.
        period: Selected period.
        custom_range: Range used when ``period`` is ``custom``.
        total_balance: Balance snapshot of the accounts in scope; reported as
            both ``total_balance`` and ``net_worth``.
        reference_date: "Now" for boundary resolution (defaults to the clock).
        config: Engine switches (defaults to :func:`get_config`).

    Returns:
        Summary with monetary values rounded to cents.
    """
    config = config or get_config()
    current, previous = resolve_with_previous(period, custom_range, reference_date, config=config)
    frame = transactions_frame(transactions)

    in_period = window(frame, current.start_date, current.end_date)
    income = income_total(in_period)
    expenses = expense_total(in_period)

    in_previous = window(frame, previous.start_date, previous.end_date)
    previous_income = income_total(in_previous)
    previous_expenses = expense_total(in_previous)

    logger.debug(
        'Summarised %d of %d transactions for %s (%s - %s)',
        len(in_period), len(frame), current.label, current.start_date, current.end_date,
    )

    balance = round(float(total_balance), 2)
    return FinancialSummary(
        total_balance=balance,
        period_income=round(income, 2),
        period_expenses=round(expenses, 2),
        net_worth=balance,
        debt_to_income_ratio=expenses / income if income > 0 else 0.0,
        savings_rate=savings_rate(income, expenses, clamp=config.clamp_negative_savings),
        previous_period_income=round(previous_income, 2),
        previous_period_expenses=round(previous_expenses, 2),
        period_label=current.label,
        transaction_count=int(len(in_period)),
    )


def transaction_stats(transactions: Iterable[Transaction]) -> Dict[str, float]:
    """Counts and totals for a transaction list (no period applied)."""
    frame = transactions_frame(transactions)
    amounts = frame['amount']
    total_income = income_total(frame)
    total_expenses = expense_total(frame)
    count = len(frame)
    return {
        'total_count': count,
        'income_count': int((amounts > 0).sum()),
        'expense_count': int((amounts < 0).sum()),
        'total_income': round(total_income, 2),
        'total_expenses': round(total_expenses, 2),
        'average_transaction': round((total_income - total_expenses) / count, 2) if count else 0.0,
    }


def category_spending(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Spending per category, largest first.

    Returns:
        DataFrame indexed by category with ``Total_Spent``,
        ``Transaction_Count`` and ``Avg_Transaction`` columns.
    """
    frame = transactions_frame(transactions)
    expenses = frame[frame['amount'] < 0].copy()
    if expenses.empty:
        return pd.DataFrame(columns=CATEGORY_SPENDING_COLUMNS)

    expenses['amount'] = expenses['amount'].abs()
    spending = expenses.groupby('category')['amount'].agg(['sum', 'count', 'mean']).round(2)
    spending.columns = CATEGORY_SPENDING_COLUMNS
    spending.index.name = 'Category'
    return spending.sort_values('Total_Spent', ascending=False, kind='stable')


def top_spending_categories(transactions: Iterable[Transaction], limit: int = 5) -> List[Dict[str, Any]]:
    spending = category_spending(transactions).head(max(0, limit))
    return [
        {'category': category, 'total': float(row['Total_Spent']), 'count': int(row['Transaction_Count'])}
        for category, row in spending.iterrows()
    ]


def running_balance(transactions: Iterable[Transaction], initial_balance: float = 0.0) -> List[Dict[str, Any]]:
    """Balance after each transaction, oldest first."""
    frame = transactions_frame(transactions)
    if frame.empty:
        return []
    ordered = frame.sort_values('date', kind='stable')
    balances = ordered['amount'].cumsum() + float(initial_balance)
    return [
        {'id': txn_id, 'date': date.to_pydatetime(), 'balance': round(float(balance), 2)}
        for txn_id, date, balance in zip(ordered['id'], ordered['date'], balances)
    ]
