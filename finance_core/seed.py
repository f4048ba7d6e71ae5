"""Demo accounts with a deterministic transaction history.

Used as the initial state of :class:`~finance_core.state.FinancialStateStore`
and by the dashboard driver when no persistence gateway is attached.  The
history is generated with ``numpy.random.default_rng(seed)`` relative to the
reference date, so the same ``(reference_date, seed)`` pair always produces
the same ledger.
"""

from __future__ import annotations

import calendar
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import numpy as np

from .models import Account, AccountType, Transaction
from .periods import reference_now

# (merchant key, clean name, category)
MERCHANTS: Tuple[Tuple[str, str, str], ...] = (
    ('STARBUCKS', 'Starbucks', 'Food & Dining'),
    ('CHIPOTLE', 'Chipotle', 'Food & Dining'),
    ('WHOLE FOODS', 'Whole Foods', 'Groceries'),
    ('TRADER JOES', "Trader Joe's", 'Groceries'),
    ('SHELL OIL', 'Shell', 'Transportation'),
    ('UBER', 'Uber', 'Transportation'),
    ('AMAZON', 'Amazon', 'Shopping'),
    ('TARGET', 'Target', 'Shopping'),
    ('NETFLIX', 'Netflix', 'Subscriptions'),
    ('SPOTIFY', 'Spotify', 'Subscriptions'),
    ('AMC THEATRES', 'AMC Theatres', 'Entertainment'),
    ('PG&E', 'PG&E', 'Utilities'),
    ('CVS PHARMACY', 'CVS Pharmacy', 'Healthcare'),
    ('DELTA AIR', 'Delta Air Lines', 'Travel'),
    ('PAYROLL DEPOSIT', 'Payroll', 'Income'),
    ('FREELANCE PAYMENT', 'Freelance', 'Income'),
)

BUSINESS_MERCHANTS: Tuple[Tuple[str, str, str], ...] = (
    ('ZOOM', 'Zoom', 'Business'),
    ('SLACK', 'Slack', 'Business'),
    ('AWS', 'Amazon Web Services', 'Business'),
    ('GITHUB', 'GitHub', 'Business'),
    ('QUICKBOOKS', 'QuickBooks', 'Business'),
    ('CLIENT PAYMENT', 'Client Payment', 'Income'),
)

# category -> (low, high) absolute expense amount
EXPENSE_RANGES: Dict[str, Tuple[float, float]] = {
    'Food & Dining': (15, 100),
    'Groceries': (50, 200),
    'Transportation': (25, 100),
    'Shopping': (30, 300),
    'Entertainment': (20, 100),
    'Utilities': (80, 200),
    'Healthcare': (40, 200),
    'Business': (25, 200),
    'Travel': (100, 500),
    'Subscriptions': (10, 50),
}
DEFAULT_EXPENSE_RANGE = (25, 100)

# Month number -> activity multiplier (holiday season is busiest)
SEASONAL_FACTORS = {
    1: 1.1, 2: 0.9, 3: 1.0, 4: 1.0, 5: 1.1, 6: 1.2,
    7: 1.2, 8: 1.1, 9: 1.0, 10: 1.0, 11: 1.3, 12: 1.4,
}

# id, name, type, balance, account number, bank, limit, months of history, txns per month
ACCOUNT_SEEDS = (
    ('acc_checking', 'Primary Checking', 'CHECKING', 2543.67, '****1234', 'Chase Bank', None, 15, 20),
    ('acc_savings', 'High Yield Savings', 'SAVINGS', 12750.00, '****5678', 'Ally Bank', None, 15, 3),
    ('acc_credit', 'Rewards Credit Card', 'CREDIT', -1247.82, '****9012', 'Chase Bank', 5000.0, 15, 25),
    ('acc_business', 'Business Checking', 'BUSINESS_CHECKING', 5420.33, '****3456', 'Wells Fargo', None, 12, 12),
    ('acc_home_value', 'Home Value', 'INVESTMENT', 425000.00, 'N/A', 'Property Asset', None, 0, 0),
    ('acc_mortgage', 'Home Mortgage', 'LOAN', -285000.00, '****7890', 'Quicken Loans', None, 15, 1),
    ('acc_student_loan_1', 'Federal Student Loan', 'LOAN', -18500.00, '****2345', 'Nelnet', None, 15, 1),
    ('acc_student_loan_2', 'Private Student Loan', 'LOAN', -12500.00, '****6789', 'Sallie Mae', None, 15, 1),
)

# account id -> (servicer, base monthly payment)
LOAN_PAYMENTS = {
    'acc_mortgage': ('Quicken Loans', 1950.0),
    'acc_student_loan_1': ('Nelnet', 175.0),
    'acc_student_loan_2': ('Sallie Mae', 140.0),
}


def _month_start(reference: datetime, offset: int) -> datetime:
    index = reference.year * 12 + (reference.month - 1) - offset
    return datetime(index // 12, index % 12 + 1, 1)


def _days_available(month: datetime, reference: datetime) -> int:
    # The current month only has history up to the reference day
    if (month.year, month.month) == (reference.year, reference.month):
        return reference.day
    return calendar.monthrange(month.year, month.month)[1]


def _income_amount(rng: np.random.Generator, merchant_key: str) -> float:
    if 'PAYROLL' in merchant_key:
        return 3500 + rng.random() * 1500
    if 'FREELANCE' in merchant_key or 'CLIENT' in merchant_key:
        return 500 + rng.random() * 2000
    return 100 + rng.random() * 500


def _expense_amount(rng: np.random.Generator, category: str) -> float:
    low, high = EXPENSE_RANGES.get(category, DEFAULT_EXPENSE_RANGE)
    return low + rng.random() * (high - low)


def historical_transactions(
    account_id: str,
    reference: datetime,
    months_back: int,
    per_month: int,
    rng: np.random.Generator,
    *,
    business: bool = False,
) -> Tuple[Transaction, ...]:
    """Spending/income history for one account, newest first."""
    if account_id in LOAN_PAYMENTS:
        return loan_payments(account_id, reference, months_back, rng)

    merchants = BUSINESS_MERCHANTS if business else MERCHANTS
    rows: List[Transaction] = []
    for offset in range(months_back):
        month = _month_start(reference, offset)
        days = _days_available(month, reference)
        count = int(per_month * SEASONAL_FACTORS[month.month])
        for i in range(count):
            key, clean_name, category = merchants[int(rng.integers(len(merchants)))]
            if category == 'Income' or rng.random() < 0.15:
                amount = _income_amount(rng, key)
                category = 'Income'
            else:
                amount = -_expense_amount(rng, category)
            day = int(rng.integers(1, days + 1))
            rows.append(Transaction(
                id=f"txn_{account_id}_{offset}_{i}",
                account_id=account_id,
                amount=round(amount, 2),
                date=month.replace(day=day).date().isoformat(),
                category=category,
                tags=(category,) if rng.random() > 0.3 else (),
                pending=offset == 0 and rng.random() < 0.1,
                description=f"{key} #{int(rng.integers(1000))}",
                merchant=clean_name,
                merchant_original=key,
            ))
    return tuple(sorted(rows, key=lambda t: t.timestamp, reverse=True))


def loan_payments(
    account_id: str,
    reference: datetime,
    months_back: int,
    rng: np.random.Generator,
) -> Tuple[Transaction, ...]:
    """One payment per month, made between the 1st and the 15th."""
    servicer, base_payment = LOAN_PAYMENTS[account_id]
    rows: List[Transaction] = []
    for offset in range(months_back):
        month = _month_start(reference, offset)
        day = int(rng.integers(1, min(15, _days_available(month, reference)) + 1))
        payment = base_payment + (rng.random() * 20 - 10)
        rows.append(Transaction(
            id=f"txn_{account_id}_{offset}",
            account_id=account_id,
            amount=-round(payment, 2),
            date=month.replace(day=day).date().isoformat(),
            category='Loan Payment',
            tags=('Loan Payment',),
            pending=offset == 0 and rng.random() < 0.1,
            description=f"Monthly Payment #{int(rng.integers(1000))}",
            merchant=servicer,
            merchant_original=servicer.upper(),
        ))
    return tuple(sorted(rows, key=lambda t: t.timestamp, reverse=True))


def mock_accounts(reference_date: Optional[datetime] = None, seed: int = 42) -> Tuple[Account, ...]:
    """The demo accounts, with history ending at ``reference_date``.

    Args:
        reference_date: Last day of generated history (defaults to now).
        seed: Seed for ``numpy.random.default_rng``.

    Returns:
        Eight accounts: checking, savings, credit card, business checking,
        home value (no transactions), mortgage and two student loans.
    """
    reference = reference_now(reference_date)
    rng = np.random.default_rng(seed)
    accounts = []
    for (account_id, name, account_type, balance, number, bank, limit,
         months_back, per_month) in ACCOUNT_SEEDS:
        account_type = AccountType.coerce(account_type)
        accounts.append(Account(
            id=account_id,
            name=name,
            type=account_type,
            balance=balance,
            transactions=historical_transactions(
                account_id, reference, months_back, per_month, rng,
                business=account_type.is_business,
            ),
            bank_name=bank,
            account_number=number,
            limit=limit,
        ))
    return tuple(accounts)
