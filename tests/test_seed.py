from datetime import datetime

from finance_core.models import AccountType
from finance_core.seed import mock_accounts

REF = datetime(2025, 9, 15, 12, 0)


def test_demo_accounts():
    accounts = {a.id: a for a in mock_accounts(REF)}
    assert list(accounts) == [
        'acc_checking', 'acc_savings', 'acc_credit', 'acc_business',
        'acc_home_value', 'acc_mortgage', 'acc_student_loan_1', 'acc_student_loan_2',
    ]
    assert accounts['acc_checking'].balance == 2543.67
    assert accounts['acc_credit'].limit == 5000.0
    assert accounts['acc_business'].type is AccountType.BUSINESS_CHECKING
    assert accounts['acc_business'].is_business
    assert accounts['acc_home_value'].transactions == ()


def test_history_is_deterministic():
    assert mock_accounts(REF, seed=7) == mock_accounts(REF, seed=7)
    assert mock_accounts(REF, seed=7) != mock_accounts(REF, seed=8)


def test_history_ends_at_reference_date():
    for account in mock_accounts(REF):
        for txn in account.transactions:
            assert txn.timestamp <= REF
            assert txn.account_id == account.id


def test_loan_accounts_get_one_payment_per_month():
    accounts = {a.id: a for a in mock_accounts(REF)}
    payments = accounts['acc_mortgage'].transactions
    assert len(payments) == 15
    assert all(t.amount < 0 and t.category == 'Loan Payment' for t in payments)
    assert len({t.date[:7] for t in payments}) == 15


def test_transactions_sorted_newest_first():
    checking = mock_accounts(REF)[0]
    stamps = [t.timestamp for t in checking.transactions]
    assert stamps == sorted(stamps, reverse=True)
    assert len({t.id for t in checking.transactions}) == len(stamps)
