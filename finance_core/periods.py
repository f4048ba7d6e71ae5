"""Period resolution: turn a period selector into concrete date windows.

Every consumer (summary KPIs, trend charts, budget views) derives its
windows from :func:`resolve` and :func:`resolve_previous`, so the calendar
rules below are defined exactly once.

Rules, relative to the reference moment:

* ``day``      midnight today
* ``week``     midnight of the most recent Monday (a Sunday maps back six days)
* ``month``    the 1st of the current month
* ``quarter``  the 1st of the current three-month block
* ``year``     January 1st
* ``5year``    January 1st, five years back
* ``custom``   the supplied range verbatim

The window ends at the reference moment, except for ``custom`` which ends at
the range's end date.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from .config import EngineConfig, get_config
from .errors import ValidationError
from .models import CustomDateRange, PeriodBoundary, TimePeriod, parse_date

logger = logging.getLogger(__name__)

ONE_MS = timedelta(milliseconds=1)

DEFAULT_PERIODS = tuple(period.value for period in TimePeriod)

PERIOD_LABELS: Dict[TimePeriod, str] = {
    TimePeriod.DAY: 'daily',
    TimePeriod.WEEK: 'weekly',
    TimePeriod.MONTH: 'monthly',
    TimePeriod.QUARTER: 'quarterly',
    TimePeriod.YEAR: 'yearly',
    TimePeriod.FIVE_YEAR: '5-year',
    TimePeriod.CUSTOM: 'custom',
}

PERIOD_TITLES: Dict[TimePeriod, str] = {
    TimePeriod.DAY: 'Daily',
    TimePeriod.WEEK: 'Weekly',
    TimePeriod.MONTH: 'Monthly',
    TimePeriod.QUARTER: 'Quarterly',
    TimePeriod.YEAR: 'Yearly',
    TimePeriod.FIVE_YEAR: '5-Year',
    TimePeriod.CUSTOM: 'Custom',
}


def period_label(period: TimePeriod | str) -> str:
    """Display title for KPI headings, e.g. ``Income (Monthly)``."""
    return PERIOD_TITLES[TimePeriod.coerce(period)]


def reference_now(reference_date: Optional[datetime] = None) -> datetime:
    """``reference_date`` as naive local time, or the current moment."""
    return parse_date(reference_date) if reference_date is not None else datetime.now()


def coerce_range(custom_range: Any) -> Optional[CustomDateRange]:
    """Accept a :class:`CustomDateRange`, a mapping of its fields, or ``None``."""
    if custom_range is None or isinstance(custom_range, CustomDateRange):
        return custom_range
    if isinstance(custom_range, dict):
        return CustomDateRange(**custom_range)
    raise ValidationError(f"Unsupported custom range: {custom_range!r}")


def _midnight(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _week_start(moment: datetime) -> datetime:
    # weekday(): Monday == 0 ... Sunday == 6
    return _midnight(moment) - timedelta(days=moment.weekday())


def _shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _quarter_start(moment: datetime) -> datetime:
    quarter = (moment.month - 1) // 3
    return datetime(moment.year, quarter * 3 + 1, 1)


def period_start(period: TimePeriod, moment: datetime) -> datetime:
    """Start of the calendar window of ``period`` that contains ``moment``."""
    if period is TimePeriod.DAY:
        return _midnight(moment)
    if period is TimePeriod.WEEK:
        return _week_start(moment)
    if period is TimePeriod.MONTH:
        return datetime(moment.year, moment.month, 1)
    if period is TimePeriod.QUARTER:
        return _quarter_start(moment)
    if period is TimePeriod.YEAR:
        return datetime(moment.year, 1, 1)
    if period is TimePeriod.FIVE_YEAR:
        return datetime(moment.year - 5, 1, 1)
    raise ValidationError(f"'{period.value}' has no calendar start")


def resolve(
    period: TimePeriod | str,
    custom_range: Optional[CustomDateRange] = None,
    reference_date: Optional[datetime] = None,
    *,
    config: Optional[EngineConfig] = None,
) -> PeriodBoundary:
    """Resolve ``period`` into an absolute ``[start, end]`` window.

    A ``custom`` period without a range falls back to ``month`` semantics
    when ``config.fallback_on_missing_range`` is set; the returned boundary
    then carries ``is_fallback=True`` and ``period=MONTH``.

    Raises:
        ValidationError: unknown period, or a missing custom range with the
            fallback disabled.
    """
    period = TimePeriod.coerce(period)
    reference = reference_now(reference_date)
    custom_range = coerce_range(custom_range)

    if period is TimePeriod.CUSTOM:
        if custom_range is not None:
            return PeriodBoundary(
                start_date=custom_range.start,
                end_date=custom_range.end,
                label=custom_range.label or PERIOD_LABELS[TimePeriod.CUSTOM],
                period=TimePeriod.CUSTOM,
            )
        config = config or get_config()
        if not config.fallback_on_missing_range:
            raise ValidationError('A custom period requires a custom date range')
        logger.warning('Custom period selected without a date range; using month boundaries')
        return replace(resolve(TimePeriod.MONTH, None, reference), is_fallback=True)

    return PeriodBoundary(
        start_date=period_start(period, reference),
        end_date=reference,
        label=PERIOD_LABELS[period],
        period=period,
    )


def resolve_previous(
    period: TimePeriod | str,
    current_start: datetime,
    reference_date: Optional[datetime] = None,
    *,
    current_end: Optional[datetime] = None,
) -> PeriodBoundary:
    """Window immediately preceding the one starting at ``current_start``.

    The start moves back one period length (``5year`` moves to ten years
    back from the reference year) and the end is always
    ``current_start - 1ms`` so the windows never overlap.  For ``custom``
    the previous window has the same length as the current one, which runs
    to ``current_end`` (or the reference moment).
    """
    period = TimePeriod.coerce(period)
    end = current_start - ONE_MS

    if period is TimePeriod.DAY:
        start = _midnight(current_start) - timedelta(days=1)
    elif period is TimePeriod.WEEK:
        start = _week_start(current_start) - timedelta(days=7)
    elif period is TimePeriod.MONTH:
        year, month = _shift_month(current_start.year, current_start.month, -1)
        start = datetime(year, month, 1)
    elif period is TimePeriod.QUARTER:
        previous_quarter = (current_start.month - 1) // 3 - 1
        if previous_quarter < 0:
            # Q1 wraps to Q4 of the prior year
            start = datetime(current_start.year - 1, 10, 1)
        else:
            start = datetime(current_start.year, previous_quarter * 3 + 1, 1)
    elif period is TimePeriod.YEAR:
        start = datetime(current_start.year - 1, 1, 1)
    elif period is TimePeriod.FIVE_YEAR:
        start = datetime(current_start.year - 5, 1, 1)
    else:
        span = (current_end or reference_now(reference_date)) - current_start
        start = end - max(span, timedelta(0))

    return PeriodBoundary(
        start_date=start,
        end_date=end,
        label=f"previous {PERIOD_LABELS[period]}",
        period=period,
    )


def resolve_with_previous(
    period: TimePeriod | str,
    custom_range: Optional[CustomDateRange] = None,
    reference_date: Optional[datetime] = None,
    *,
    config: Optional[EngineConfig] = None,
) -> Tuple[PeriodBoundary, PeriodBoundary]:
    """Current and previous windows, resolved from one reference moment."""
    reference = reference_now(reference_date)
    current = resolve(period, custom_range, reference, config=config)
    previous = resolve_previous(
        current.period,
        current.start_date,
        reference,
        current_end=current.end_date,
    )
    return current, previous
