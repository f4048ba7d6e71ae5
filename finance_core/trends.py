"""Fixed-length trend series for sparklines and charts.

The bucket resolution for each period is defined once, in
:data:`RESOLUTIONS`.  Bucket ``i`` (oldest first) ends at
``anchor - (n - 1 - i) * width``:

* ``balance``  cumulative sum of every amount dated at or before the bucket
  end, floored at zero for display
* ``income``   positive amounts in ``(end - width, end]``
* ``expenses`` absolute negative amounts in ``(end - width, end]``
* ``savings``  savings rate of the bucket in percent

Sums are computed from prefix sums over the date-sorted ledger, so a
series costs one sort plus a binary search per bucket.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from .config import EngineConfig, get_config
from .errors import ValidationError
from .frames import transactions_frame
from .models import CustomDateRange, TimePeriod, Transaction
from .periods import reference_now, resolve
from .summary import savings_rate

logger = logging.getLogger(__name__)

SERIES_NAMES = ('balance', 'income', 'expenses', 'savings')
MAX_CUSTOM_BUCKETS = 366


@dataclass(frozen=True)
class Resolution:
    name: str
    buckets: int
    width: timedelta
    label_format: str


RESOLUTIONS: Dict[TimePeriod, Resolution] = {
    TimePeriod.DAY: Resolution('hourly', 24, timedelta(hours=1), '%H:%M'),
    TimePeriod.WEEK: Resolution('daily', 7, timedelta(days=1), '%a %d'),
    TimePeriod.MONTH: Resolution('daily', 30, timedelta(days=1), '%b %d'),
    TimePeriod.QUARTER: Resolution('weekly', 13, timedelta(days=7), '%b %d'),
    TimePeriod.YEAR: Resolution('monthly', 12, timedelta(days=30), '%b %Y'),
    TimePeriod.FIVE_YEAR: Resolution('monthly', 60, timedelta(days=30), '%b %Y'),
}


@dataclass(frozen=True)
class TrendSeries:
    period: TimePeriod
    resolution: str
    labels: Tuple[str, ...]
    bucket_ends: Tuple[datetime, ...]
    balance: Tuple[float, ...]
    income: Tuple[float, ...]
    expenses: Tuple[float, ...]
    savings: Tuple[float, ...]

    def __len__(self) -> int:
        return len(self.labels)

    def chart_data(self, series: str) -> Dict[str, List]:
        """``{"labels": [...], "values": [...]}`` for one of :data:`SERIES_NAMES`."""
        if series not in SERIES_NAMES:
            raise ValidationError(f"Unknown trend series '{series}'")
        return {'labels': list(self.labels), 'values': list(getattr(self, series))}

    def to_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame(
            {name: list(getattr(self, name)) for name in SERIES_NAMES},
            index=pd.DatetimeIndex(list(self.bucket_ends), name='Period'),
        )
        frame['label'] = list(self.labels)
        return frame


def resolution_for(
    period: TimePeriod | str,
    custom_range: Optional[CustomDateRange] = None,
    reference_date: Optional[datetime] = None,
    *,
    config: Optional[EngineConfig] = None,
) -> Tuple[Resolution, datetime, TimePeriod]:
    """Bucket layout, anchor (newest bucket end) and effective period.

    ``custom`` uses one daily bucket per calendar day of the range, anchored
    at the range end.  A missing range follows the same fallback rule as
    :func:`~finance_core.periods.resolve`.
    """
    reference = reference_now(reference_date)
    boundary = resolve(period, custom_range, reference, config=config)
    if boundary.period is not TimePeriod.CUSTOM:
        return RESOLUTIONS[boundary.period], reference, boundary.period

    days = (boundary.end_date.date() - boundary.start_date.date()).days + 1
    buckets = min(max(days, 1), MAX_CUSTOM_BUCKETS)
    return Resolution('daily', buckets, timedelta(days=1), '%b %d'), boundary.end_date, TimePeriod.CUSTOM


def _cents(values: np.ndarray) -> Tuple[float, ...]:
    # max() also folds the -0.0 left by prefix-sum differences into 0.0
    return tuple(max(0.0, round(float(value), 2)) for value in values)


def generate(
    transactions: Iterable[Transaction],
    period: TimePeriod | str,
    custom_range: Optional[CustomDateRange] = None,
    *,
    reference_date: Optional[datetime] = None,
    config: Optional[EngineConfig] = None,
) -> TrendSeries:
    """Build the balance/income/expenses/savings series for ``period``.

    The length of every series is the bucket count of the period's
    resolution, whatever the content of ``transactions``.
    """
    config = config or get_config()
    resolution, anchor, effective = resolution_for(period, custom_range, reference_date, config=config)

    frame = transactions_frame(transactions)
    dates = frame['date'].to_numpy(dtype='datetime64[ns]')
    amounts = frame['amount'].to_numpy(dtype=float)
    order = np.argsort(dates, kind='stable')
    dates = dates[order]
    amounts = amounts[order]

    cum_total = np.concatenate(([0.0], np.cumsum(amounts)))
    cum_income = np.concatenate(([0.0], np.cumsum(np.where(amounts > 0, amounts, 0.0))))
    cum_expense = np.concatenate(([0.0], np.cumsum(np.where(amounts < 0, -amounts, 0.0))))

    width = pd.Timedelta(resolution.width).to_timedelta64()
    offsets = np.arange(resolution.buckets - 1, -1, -1)
    ends = pd.Timestamp(anchor).to_datetime64() - offsets * width

    upto = np.searchsorted(dates, ends, side='right')
    before = np.searchsorted(dates, ends - width, side='right')

    balance = _cents(cum_total[upto])
    income = _cents(cum_income[upto] - cum_income[before])
    expenses = _cents(cum_expense[upto] - cum_expense[before])
    savings = tuple(
        round(savings_rate(inc, exp, clamp=config.clamp_negative_savings) * 100, 2)
        for inc, exp in zip(income, expenses)
    )

    index = pd.DatetimeIndex(ends)
    logger.debug(
        'Generated %d %s buckets for %s from %d transactions',
        resolution.buckets, resolution.name, effective.value, len(frame),
    )
    return TrendSeries(
        period=effective,
        resolution=resolution.name,
        labels=tuple(index.strftime(resolution.label_format)),
        bucket_ends=tuple(ts.to_pydatetime() for ts in index),
        balance=balance,
        income=income,
        expenses=expenses,
        savings=savings,
    )
