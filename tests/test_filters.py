import pytest

from finance_core.errors import ValidationError
from finance_core.filters import (
    apply_filters,
    by_account_partition,
    by_amount_range,
    by_category,
    by_date_range,
    by_search_term,
    by_tags,
    filter_accounts,
    sort_transactions,
)
from finance_core.models import Account, FilterOptions, Transaction


def _txn(txn_id, amount, date, category='Shopping', **kwargs):
    return Transaction(id=txn_id, account_id=kwargs.pop('account_id', 'acc_checking'),
                       amount=amount, date=date, category=category, **kwargs)


TXNS = (
    _txn('t1', -54.20, '2025-09-03', 'Food & Dining', merchant='Starbucks', tags=('coffee',)),
    _txn('t2', 1500.00, '2025-09-01', 'Income', merchant='Payroll'),
    _txn('t3', -120.00, '2025-08-28', 'Shopping', merchant='Amazon', pending=True),
    _txn('t4', -9.99, '2025-09-10', 'Subscriptions', merchant='Netflix', description='NETFLIX.COM'),
)


def _accounts():
    return (
        Account('acc_checking', 'Checking', 'CHECKING', 100.0, TXNS[:2]),
        Account('acc_business', 'Business', 'BUSINESS_CHECKING', 50.0,
                (_txn('b1', -30.0, '2025-09-02', 'Business', account_id='acc_business'),)),
        Account('acc_credit', 'Credit', 'CREDIT', -20.0, TXNS[2:]),
    )


def test_date_range_is_inclusive_and_keeps_order():
    result = by_date_range(TXNS, '2025-09-01', '2025-09-03')
    assert [t.id for t in result] == ['t1', 't2']


def test_date_range_open_bounds():
    assert [t.id for t in by_date_range(TXNS, start='2025-09-02')] == ['t1', 't4']
    assert [t.id for t in by_date_range(TXNS, end='2025-08-31')] == ['t3']


def test_account_partition():
    accounts = _accounts()
    assert [a.id for a in filter_accounts(accounts, 'business')] == ['acc_business']
    assert [a.id for a in filter_accounts(accounts, 'personal')] == ['acc_checking', 'acc_credit']
    assert len(filter_accounts(accounts, 'both')) == 3
    assert [t.id for t in by_account_partition(accounts, 'personal')] == ['t1', 't2', 't3', 't4']


def test_unknown_partition_raises():
    with pytest.raises(ValidationError):
        filter_accounts(_accounts(), 'family')


def test_category_and_tags():
    assert [t.id for t in by_category(TXNS, 'Shopping')] == ['t3']
    assert [t.id for t in by_category(TXNS, ['Income', 'Subscriptions'])] == ['t2', 't4']
    assert [t.id for t in by_tags(TXNS, 'coffee')] == ['t1']
    assert by_category(TXNS, []) == TXNS


def test_search_is_case_insensitive_across_fields():
    assert [t.id for t in by_search_term(TXNS, 'STARBUCKS')] == ['t1']
    assert [t.id for t in by_search_term(TXNS, 'netflix.com')] == ['t4']
    assert [t.id for t in by_search_term(TXNS, 'Coffee')] == ['t1']
    assert [t.id for t in by_search_term(TXNS, 'dining')] == ['t1']
    assert by_search_term(TXNS, '   ') == TXNS


def test_amount_range():
    assert [t.id for t in by_amount_range(TXNS, max_amount=-50)] == ['t1', 't3']


def test_apply_filters_combines_criteria():
    filters = FilterOptions(transaction_types=['expense'], statuses=['cleared'], min_amount=-100)
    assert [t.id for t in apply_filters(TXNS, filters)] == ['t1', 't4']


def test_apply_filters_without_criteria_returns_everything():
    assert apply_filters(TXNS, FilterOptions()) == TXNS
    assert apply_filters(TXNS, None) == TXNS


def test_filter_options_rejects_unknown_type():
    with pytest.raises(ValidationError):
        FilterOptions(transaction_types=['transfer'])


def test_sorting():
    assert [t.id for t in sort_transactions(TXNS, 'date-desc')] == ['t4', 't1', 't2', 't3']
    assert [t.id for t in sort_transactions(TXNS, 'amount-desc')] == ['t2', 't3', 't1', 't4']
    assert [t.id for t in sort_transactions(TXNS, 'merchant-asc')] == ['t3', 't4', 't2', 't1']
    assert sort_transactions(TXNS, 'bogus') == TXNS


def test_inputs_are_not_mutated():
    before = [t.tags for t in TXNS]
    apply_filters(TXNS, FilterOptions(tags=['coffee'], search_term='star'))
    assert [t.tags for t in TXNS] == before
