from datetime import datetime

import pytest

from finance_core.config import EngineConfig
from finance_core.errors import ValidationError
from finance_core.models import CustomDateRange, TimePeriod, Transaction
from finance_core.trends import RESOLUTIONS, SERIES_NAMES, generate

REF = datetime(2025, 9, 15, 12, 0)


def _txn(txn_id, amount, date, category='Shopping'):
    return Transaction(id=txn_id, account_id='acc_checking', amount=amount, date=date, category=category)


SCENARIO = (
    _txn('t1', -54.20, '2025-09-15', 'Food & Dining'),
    _txn('t2', 1500.00, '2025-09-15', 'Income'),
)


@pytest.mark.parametrize('period, length', [
    ('day', 24), ('week', 7), ('month', 30), ('quarter', 13), ('year', 12), ('5year', 60),
])
def test_series_lengths_for_empty_input(period, length):
    series = generate((), period, reference_date=REF)
    assert len(series) == length
    for name in SERIES_NAMES:
        assert len(getattr(series, name)) == length
        assert all(value == 0.0 for value in getattr(series, name))


def test_resolution_table_covers_every_calendar_period():
    assert set(RESOLUTIONS) == set(TimePeriod) - {TimePeriod.CUSTOM}


def test_month_buckets_aggregate_latest_day():
    series = generate(SCENARIO, 'month', reference_date=REF)
    assert series.resolution == 'daily'
    assert series.bucket_ends[-1] == REF
    assert series.labels[-1] == 'Sep 15'
    assert series.income[-1] == 1500.00
    assert series.expenses[-1] == 54.20
    assert series.balance[-1] == 1445.80
    assert series.balance[0] == 0.0
    assert series.savings[-1] == 96.39
    assert sum(series.income[:-1]) == 0.0


def test_buckets_are_half_open():
    ledger = (_txn('edge', 100.0, '2025-09-14T12:00:00', 'Income'),)
    series = generate(ledger, 'month', reference_date=REF)
    # exactly on a bucket end belongs to that bucket, not the next one
    assert series.income[-2] == 100.0
    assert series.income[-1] == 0.0


def test_balance_is_cumulative_and_floored():
    ledger = (
        _txn('a', 200.0, '2025-09-10', 'Income'),
        _txn('b', -50.0, '2025-09-12'),
    )
    series = generate(ledger, 'week', reference_date=REF)
    assert series.balance[-1] == 150.0
    assert series.balance[2] == 200.0
    assert series.balance[0] == 0.0

    overdrawn = generate((_txn('c', -75.0, '2025-09-12'),), 'week', reference_date=REF)
    assert all(value == 0.0 for value in overdrawn.balance)


def test_custom_range_uses_daily_buckets_per_day():
    date_range = CustomDateRange('2025-03-01', '2025-03-10')
    series = generate((_txn('m', -10.0, '2025-03-05'),), 'custom', date_range, reference_date=REF)
    assert series.period is TimePeriod.CUSTOM
    assert len(series) == 10
    assert series.bucket_ends[-1] == datetime(2025, 3, 10)
    assert series.expenses[4] == 10.0


def test_missing_custom_range_falls_back_to_month():
    series = generate((), 'custom', None, reference_date=REF, config=EngineConfig())
    assert series.period is TimePeriod.MONTH
    assert len(series) == 30


def test_negative_savings_unclamped():
    ledger = (_txn('i', 100.0, '2025-09-15', 'Income'), _txn('e', -150.0, '2025-09-15'))
    clamped = generate(ledger, 'week', reference_date=REF)
    unclamped = generate(ledger, 'week', reference_date=REF, config=EngineConfig(clamp_negative_savings=False))
    assert clamped.savings[-1] == 0.0
    assert unclamped.savings[-1] == -50.0


def test_chart_data_and_frame():
    series = generate(SCENARIO, 'week', reference_date=REF)
    data = series.chart_data('income')
    assert data['labels'] == list(series.labels)
    assert data['values'][-1] == 1500.0
    with pytest.raises(ValidationError):
        series.chart_data('net')

    frame = series.to_frame()
    assert list(frame.columns) == list(SERIES_NAMES) + ['label']
    assert len(frame) == 7


def test_generate_is_deterministic():
    assert generate(SCENARIO, 'quarter', reference_date=REF) == generate(SCENARIO, 'quarter', reference_date=REF)
