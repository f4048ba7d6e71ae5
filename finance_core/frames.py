"""Conversion of transaction records into pandas DataFrames.

The aggregations in :mod:`summary`, :mod:`trends` and :mod:`budgets` work
on a column-oriented view of the ledger.  Building the frame from already
validated :class:`~finance_core.models.Transaction` records means every
row has a real timestamp and a finite amount.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

import pandas as pd

from .models import Transaction

FRAME_COLUMNS = ['id', 'account_id', 'date', 'amount', 'category', 'pending']


def transactions_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Build a DataFrame with one row per transaction, in input order."""
    rows = list(transactions)
    return pd.DataFrame({
        'id': pd.Series([t.id for t in rows], dtype=object),
        'account_id': pd.Series([t.account_id for t in rows], dtype=object),
        'date': pd.to_datetime(pd.Series([t.timestamp for t in rows], dtype=object)),
        'amount': pd.Series([t.amount for t in rows], dtype=float),
        'category': pd.Series([t.category for t in rows], dtype=object),
        'pending': pd.Series([t.pending for t in rows], dtype=bool),
    }, columns=FRAME_COLUMNS)


def window(frame: pd.DataFrame, start: datetime, end: datetime) -> pd.DataFrame:
    """Rows dated within ``[start, end]`` (both inclusive)."""
    mask = (frame['date'] >= pd.Timestamp(start)) & (frame['date'] <= pd.Timestamp(end))
    return frame[mask]


def income_total(frame: pd.DataFrame) -> float:
    amounts = frame['amount']
    return float(amounts[amounts > 0].sum())


def expense_total(frame: pd.DataFrame) -> float:
    """Absolute value of the sum of negative amounts."""
    amounts = frame['amount']
    return abs(float(amounts[amounts < 0].sum()))
