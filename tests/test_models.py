from datetime import date, datetime

import pandas as pd
import pytest

from finance_core.errors import FinanceError, NotFoundError, ValidationError
from finance_core.models import (
    Account,
    AccountType,
    Budget,
    BudgetAlert,
    CustomDateRange,
    FinancialSummary,
    TimePeriod,
    Transaction,
    parse_date,
    percent_change,
)


def _txn(**kwargs):
    values = {'id': 't1', 'account_id': 'acc', 'amount': -10.0, 'date': '2025-09-01'}
    values.update(kwargs)
    return Transaction(**values)


def test_parse_date_variants():
    assert parse_date('2025-09-01') == datetime(2025, 9, 1)
    assert parse_date('2025-09-01T10:30:00') == datetime(2025, 9, 1, 10, 30)
    assert parse_date(date(2025, 9, 1)) == datetime(2025, 9, 1)
    assert parse_date(pd.Timestamp('2025-09-01 08:00')) == datetime(2025, 9, 1, 8)
    assert parse_date('2025-09-01T10:30:00Z').tzinfo is None


@pytest.mark.parametrize('value', ['yesterday', '2025-13-01', None, 42, pd.NaT])
def test_parse_date_rejects_garbage(value):
    with pytest.raises(ValidationError):
        parse_date(value)


def test_transaction_normalises_fields():
    txn = _txn(date=date(2025, 9, 1), tags=['a', 'b', 'a'], category='')
    assert txn.date == '2025-09-01T00:00:00'
    assert txn.timestamp == datetime(2025, 9, 1)
    assert txn.tags == ('a', 'b')
    assert txn.category == 'Uncategorized'
    assert txn.is_expense and not txn.is_income


@pytest.mark.parametrize('amount', [float('nan'), float('inf'), 1_000_000, 'ten', True])
def test_transaction_rejects_bad_amounts(amount):
    with pytest.raises(ValidationError):
        _txn(amount=amount)


def test_tag_helpers_return_same_object_when_unchanged():
    txn = _txn(tags=('x',))
    assert txn.with_tag('x') is txn
    assert txn.without_tag('y') is txn
    assert txn.with_tag('y').tags == ('x', 'y')


def test_records_are_hashable():
    assert hash(_txn()) == hash(_txn())
    assert len({_txn(), _txn()}) == 1


def test_account_type_partition():
    assert AccountType.coerce('BUSINESS_CREDIT').is_business
    assert not Account('a', 'A', 'LOAN', -10).is_business
    with pytest.raises(ValidationError):
        Account('a', 'A', 'PIGGY_BANK', 0)


def test_time_period_coerce():
    assert TimePeriod.coerce('5year') is TimePeriod.FIVE_YEAR
    assert TimePeriod.coerce(TimePeriod.DAY) is TimePeriod.DAY
    with pytest.raises(ValidationError) as excinfo:
        TimePeriod.coerce('decade')
    assert 'day, week' in str(excinfo.value)


def test_custom_range_validation():
    assert CustomDateRange('2025-01-01', '2025-01-01').start == datetime(2025, 1, 1)
    with pytest.raises(ValidationError):
        CustomDateRange('2025-02-01', '2025-01-01')


def test_budget_validation_and_remaining():
    budget = Budget('b', 'Shopping', 500, 'month', '2025-09-01', '2025-09-30', spent=120)
    assert budget.remaining == 380
    assert budget.period is TimePeriod.MONTH
    with pytest.raises(ValidationError):
        Budget('b', 'Shopping', -1, 'month', '2025-09-01', '2025-09-30')
    with pytest.raises(ValidationError):
        BudgetAlert('a', 'critical', 50)


def test_percent_change():
    assert percent_change(150, 100) == 50.0
    assert percent_change(50, 0) == 100.0
    assert percent_change(0, 0) == 0.0
    assert percent_change(-50, -100) == 50.0


def test_summary_to_dict_includes_derived_values():
    summary = FinancialSummary(100.0, 200.0, 50.0, 100.0, 0.25, 0.75, 100.0, 100.0, 'monthly')
    data = summary.to_dict()
    assert data['net_flow'] == 150.0
    assert data['income_change'] == 100.0
    assert data['expense_change'] == -50.0


def test_error_hierarchy():
    error = NotFoundError(details={'budget_id': 'x'})
    assert isinstance(error, LookupError)
    assert isinstance(error, FinanceError)
    assert error.code == 'NOT_FOUND'
    assert str(error) == 'The requested item could not be found.'
    assert isinstance(ValidationError('bad'), ValueError)
