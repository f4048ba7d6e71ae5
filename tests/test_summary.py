from datetime import datetime, timezone

import pytest

from finance_core.config import EngineConfig
from finance_core.models import Account, CustomDateRange, Transaction
from finance_core.summary import (
    CATEGORY_SPENDING_COLUMNS,
    accounts_balance,
    category_spending,
    period_change,
    running_balance,
    savings_rate,
    summarize,
    top_spending_categories,
    transaction_stats,
)

REF = datetime(2025, 9, 15, 12, 0)


def _txn(txn_id, amount, date, category):
    return Transaction(id=txn_id, account_id='acc_checking', amount=amount, date=date, category=category)


SCENARIO = (
    _txn('t1', -54.20, '2025-09-15', 'Food & Dining'),
    _txn('t2', 1500.00, '2025-09-15', 'Income'),
)


def test_month_scenario():
    summary = summarize(SCENARIO, 'month', None, 2543.67, reference_date=REF)
    assert summary.period_income == 1500.00
    assert summary.period_expenses == 54.20
    assert summary.savings_rate == pytest.approx(0.9639, abs=1e-4)
    assert summary.debt_to_income_ratio == pytest.approx(54.20 / 1500)
    assert summary.total_balance == 2543.67
    assert summary.net_worth == 2543.67
    assert summary.period_label == 'monthly'
    assert summary.transaction_count == 2
    assert summary.net_flow == 1445.80


def test_previous_period_comparison():
    ledger = SCENARIO + (
        _txn('p1', 1000.00, '2025-08-10', 'Income'),
        _txn('p2', -100.00, '2025-08-31T23:00:00', 'Shopping'),
        _txn('old', -999.00, '2025-06-01', 'Shopping'),
    )
    summary = summarize(ledger, 'month', None, 0.0, reference_date=REF)
    assert summary.previous_period_income == 1000.00
    assert summary.previous_period_expenses == 100.00
    assert summary.income_change == pytest.approx(50.0)
    assert summary.period_expenses == 54.20


def test_transactions_after_reference_are_ignored():
    ledger = SCENARIO + (_txn('future', 800.0, '2025-09-20', 'Income'),)
    assert summarize(ledger, 'month', None, reference_date=REF).period_income == 1500.00


def test_empty_ledger_gives_zeroed_summary():
    summary = summarize((), 'year', None, 10.0, reference_date=REF)
    assert summary.period_income == 0.0
    assert summary.period_expenses == 0.0
    assert summary.savings_rate == 0.0
    assert summary.debt_to_income_ratio == 0.0
    assert summary.income_change == 0.0


def test_negative_savings_is_clamped_by_default():
    ledger = (_txn('i', 100.0, '2025-09-10', 'Income'), _txn('e', -250.0, '2025-09-11', 'Shopping'))
    assert summarize(ledger, 'month', reference_date=REF, config=EngineConfig()).savings_rate == 0.0
    unclamped = summarize(ledger, 'month', reference_date=REF,
                          config=EngineConfig(clamp_negative_savings=False))
    assert unclamped.savings_rate == pytest.approx(-1.5)


def test_custom_period_uses_range_label():
    date_range = CustomDateRange('2025-09-01', '2025-09-15', 'First half')
    summary = summarize(SCENARIO, 'custom', date_range, reference_date=REF)
    assert summary.period_label == 'First half'
    assert summary.period_income == 1500.00


def test_summarize_is_deterministic():
    first = summarize(SCENARIO, 'week', None, 1.0, reference_date=REF)
    assert first == summarize(SCENARIO, 'week', None, 1.0, reference_date=REF)


def test_savings_rate_helper():
    assert savings_rate(0.0, 50.0) == 0.0
    assert savings_rate(200.0, 50.0) == 0.75
    assert savings_rate(100.0, 150.0, clamp=False) == -0.5
    assert period_change(120.0, 100.0) == pytest.approx(20.0)


def test_accounts_balance():
    accounts = (Account('a', 'A', 'CHECKING', 2543.67), Account('b', 'B', 'LOAN', -1000.0))
    assert accounts_balance(accounts) == 1543.67


def test_category_spending_sorted_descending():
    ledger = (
        _txn('a', -20.0, '2025-09-01', 'Food & Dining'),
        _txn('b', -30.0, '2025-09-02', 'Food & Dining'),
        _txn('c', -120.0, '2025-09-03', 'Shopping'),
        _txn('d', 500.0, '2025-09-04', 'Income'),
    )
    spending = category_spending(ledger)
    assert list(spending.columns) == CATEGORY_SPENDING_COLUMNS
    assert list(spending.index) == ['Shopping', 'Food & Dining']
    assert spending.loc['Food & Dining', 'Total_Spent'] == 50.0
    assert spending.loc['Food & Dining', 'Avg_Transaction'] == 25.0
    assert top_spending_categories(ledger, limit=1) == [{'category': 'Shopping', 'total': 120.0, 'count': 1}]


def test_category_spending_empty():
    assert category_spending(()).empty


def test_transaction_stats_and_running_balance():
    stats = transaction_stats(SCENARIO)
    assert stats['total_count'] == 2
    assert stats['income_count'] == 1
    assert stats['total_expenses'] == 54.20

    balances = running_balance(SCENARIO, initial_balance=100.0)
    assert [row['balance'] for row in balances] == [45.80, 1545.80]


def test_timezone_aware_reference_date_is_accepted():
    aware = datetime(2025, 9, 15, 12, 0, tzinfo=timezone.utc)
    summary = summarize(SCENARIO, 'month', None, 2543.67, reference_date=aware)
    assert summary.period_income == 1500.00
    assert summary.period_expenses == 54.20
