"""Domain records shared by every calculation in the package.

All records are frozen dataclasses.  Being immutable and hashable they can
be passed around freely, compared by value and used as memoisation keys.
Malformed input (unparseable dates, non-finite or out-of-range amounts,
unknown enum values) is rejected here, at construction time, with
:class:`~finance_core.errors.ValidationError` so that NaN never reaches the
aggregations.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, replace
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

import pandas as pd

from .errors import ValidationError

AMOUNT_MIN = -999_999.99
AMOUNT_MAX = 999_999.99

INCOME = 'income'
EXPENSE = 'expense'
TRANSACTION_TYPES = (INCOME, EXPENSE)
PENDING = 'pending'
CLEARED = 'cleared'
TRANSACTION_STATUSES = (PENDING, CLEARED)
ALERT_TYPES = ('warning', 'danger', 'info')


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class _CoercibleEnum(str, Enum):
    @classmethod
    def coerce(cls, value: Any):
        """Return the member for ``value`` (member or raw string)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip())
        except ValueError as e:
            allowed = ', '.join(member.value for member in cls)
            raise ValidationError(
                f"Unknown {cls.__name__} '{value}' (expected one of: {allowed})"
            ) from e


class TimePeriod(_CoercibleEnum):
    DAY = 'day'
    WEEK = 'week'
    MONTH = 'month'
    QUARTER = 'quarter'
    YEAR = 'year'
    FIVE_YEAR = '5year'
    CUSTOM = 'custom'


class AccountType(_CoercibleEnum):
    CHECKING = 'CHECKING'
    SAVINGS = 'SAVINGS'
    CREDIT = 'CREDIT'
    BUSINESS_CHECKING = 'BUSINESS_CHECKING'
    BUSINESS_SAVINGS = 'BUSINESS_SAVINGS'
    BUSINESS_CREDIT = 'BUSINESS_CREDIT'
    INVESTMENT = 'INVESTMENT'
    LOAN = 'LOAN'

    @property
    def is_business(self) -> bool:
        return 'BUSINESS' in self.value


class AccountPartition(_CoercibleEnum):
    BOTH = 'both'
    PERSONAL = 'personal'
    BUSINESS = 'business'


class Screen(_CoercibleEnum):
    DASHBOARD = 'dashboard'
    ACCOUNTS = 'accounts'
    TRANSACTIONS = 'transactions'
    ACCOUNT_DETAIL = 'account-detail'


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def parse_date(value: Any) -> datetime:
    """Parse an ISO-8601 string (or date/datetime/Timestamp) into a naive datetime.

    Timezone-aware values are converted to local wall-clock time.  Date-only
    values resolve to midnight.
    """
    if value is None:
        raise ValidationError('Date is required')
    if value is pd.NaT:
        raise ValidationError('Date is missing (NaT)')
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValidationError(f"Invalid ISO-8601 date: '{value}'") from e
    else:
        raise ValidationError(f"Unsupported date value: {value!r}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _finite(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number, got a boolean")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be a number, got {value!r}") from e
    if not math.isfinite(number):
        raise ValidationError(f"{name} must be finite, got {value!r}")
    return number


def validate_amount(value: Any) -> float:
    amount = _finite(value, 'amount')
    if not AMOUNT_MIN <= amount <= AMOUNT_MAX:
        raise ValidationError(f"amount {amount} outside [{AMOUNT_MIN}, {AMOUNT_MAX}]")
    return amount


def _date_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return parse_date(value).isoformat()


def normalize_tags(tags: Optional[Iterable[str]]) -> Tuple[str, ...]:
    """De-duplicate tags while keeping first-seen order (sets are sorted)."""
    if tags is None:
        return ()
    if isinstance(tags, str):
        tags = [tags]
    elif isinstance(tags, (set, frozenset)):
        tags = sorted(tags)
    seen = []
    for tag in tags:
        text = str(tag)
        if text and text not in seen:
            seen.append(text)
    return tuple(seen)


# ---------------------------------------------------------------------------
# Ledger records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Transaction:
    id: str
    account_id: str
    amount: float  # + income, - expense
    date: str  # ISO-8601, e.g. "2025-09-01" or "2025-09-01T10:00:00"
    category: str = 'Uncategorized'
    tags: Tuple[str, ...] = ()
    pending: bool = False
    description: str = ''
    merchant: str = ''  # clean merchant name
    merchant_original: str = ''
    notes: str = ''
    timestamp: datetime = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, 'amount', validate_amount(self.amount))
        object.__setattr__(self, 'date', _date_text(self.date))
        object.__setattr__(self, 'timestamp', parse_date(self.date))
        object.__setattr__(self, 'tags', normalize_tags(self.tags))
        object.__setattr__(self, 'category', self.category or 'Uncategorized')

    @property
    def is_income(self) -> bool:
        return self.amount > 0

    @property
    def is_expense(self) -> bool:
        return self.amount < 0

    def with_tag(self, tag: str) -> 'Transaction':
        if tag in self.tags:
            return self
        return replace(self, tags=self.tags + (tag,))

    def without_tag(self, tag: str) -> 'Transaction':
        if tag not in self.tags:
            return self
        return replace(self, tags=tuple(t for t in self.tags if t != tag))


@dataclass(frozen=True)
class Account:
    id: str
    name: str
    type: AccountType
    balance: float  # snapshot; not reconciled against transactions
    transactions: Tuple[Transaction, ...] = ()
    bank_name: str = ''
    account_number: str = ''
    limit: Optional[float] = None
    is_active: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, 'type', AccountType.coerce(self.type))
        object.__setattr__(self, 'balance', _finite(self.balance, 'balance'))
        object.__setattr__(self, 'transactions', tuple(self.transactions or ()))

    @property
    def is_business(self) -> bool:
        return self.type.is_business


# ---------------------------------------------------------------------------
# Periods
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CustomDateRange:
    start_date: str
    end_date: str
    label: str = 'Custom Range'
    start: datetime = field(init=False, repr=False, compare=False)
    end: datetime = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        start = parse_date(self.start_date)
        end = parse_date(self.end_date)
        if start > end:
            raise ValidationError(
                f"Custom range start {self.start_date} is after end {self.end_date}"
            )
        object.__setattr__(self, 'start_date', _date_text(self.start_date))
        object.__setattr__(self, 'end_date', _date_text(self.end_date))
        object.__setattr__(self, 'start', start)
        object.__setattr__(self, 'end', end)
        object.__setattr__(self, 'label', self.label or 'Custom Range')


@dataclass(frozen=True)
class PeriodBoundary:
    start_date: datetime
    end_date: datetime
    label: str
    period: TimePeriod
    is_fallback: bool = False

    def contains(self, moment: datetime) -> bool:
        return self.start_date <= moment <= self.end_date


# ---------------------------------------------------------------------------
# Derived results
# ---------------------------------------------------------------------------


def percent_change(current: float, previous: float) -> float:
    """Percentage change from ``previous`` to ``current`` (100 when starting from zero)."""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / abs(previous) * 100


@dataclass(frozen=True)
class FinancialSummary:
    total_balance: float
    period_income: float
    period_expenses: float
    net_worth: float
    debt_to_income_ratio: float
    savings_rate: float
    previous_period_income: float
    previous_period_expenses: float
    period_label: str
    transaction_count: int = 0

    @property
    def net_flow(self) -> float:
        return round(self.period_income - self.period_expenses, 2)

    @property
    def income_change(self) -> float:
        return percent_change(self.period_income, self.previous_period_income)

    @property
    def expense_change(self) -> float:
        return percent_change(self.period_expenses, self.previous_period_expenses)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.update({
            'net_flow': self.net_flow,
            'income_change': self.income_change,
            'expense_change': self.expense_change,
        })
        return data


# ---------------------------------------------------------------------------
# Budgets
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BudgetAlert:
    id: str
    type: str
    threshold: float  # percent of the budget used
    message: str = ''
    triggered: bool = False

    def __post_init__(self) -> None:
        if self.type not in ALERT_TYPES:
            raise ValidationError(f"Unknown alert type '{self.type}'")
        object.__setattr__(self, 'threshold', _finite(self.threshold, 'threshold'))


@dataclass(frozen=True)
class Budget:
    id: str
    category: str
    amount: float
    period: TimePeriod
    start_date: str
    end_date: str
    spent: float = 0.0
    remaining: Optional[float] = None
    alerts: Tuple[BudgetAlert, ...] = ()
    is_active: bool = True
    user_id: str = ''
    start: datetime = field(init=False, repr=False, compare=False)
    end: datetime = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        amount = _finite(self.amount, 'budget amount')
        if amount < 0:
            raise ValidationError(f"Budget amount must not be negative, got {amount}")
        spent = _finite(self.spent, 'spent')
        start = parse_date(self.start_date)
        end = parse_date(self.end_date)
        if start > end:
            raise ValidationError(f"Budget {self.id} starts after it ends")
        object.__setattr__(self, 'amount', amount)
        object.__setattr__(self, 'spent', spent)
        object.__setattr__(self, 'period', TimePeriod.coerce(self.period))
        object.__setattr__(self, 'start_date', _date_text(self.start_date))
        object.__setattr__(self, 'end_date', _date_text(self.end_date))
        object.__setattr__(self, 'start', start)
        object.__setattr__(self, 'end', end)
        object.__setattr__(self, 'alerts', tuple(self.alerts or ()))
        if self.remaining is None:
            object.__setattr__(self, 'remaining', amount - spent)
        else:
            object.__setattr__(self, 'remaining', _finite(self.remaining, 'remaining'))


@dataclass(frozen=True)
class BudgetProgress:
    budget_id: str
    spent: float
    remaining: float
    percentage_used: float
    is_over_budget: bool
    days_remaining: int
    projected_spending: float


@dataclass(frozen=True)
class BudgetSummary:
    total_budgets: int
    total_budgeted: float
    total_spent: float
    total_remaining: float
    over_budget_categories: Tuple[str, ...] = ()
    upcoming_alerts: Tuple[BudgetAlert, ...] = ()


# ---------------------------------------------------------------------------
# Filter criteria
# ---------------------------------------------------------------------------


def _as_tuple(values: Optional[Iterable[Any]]) -> Tuple[Any, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        return (values,)
    return tuple(values)


@dataclass(frozen=True)
class FilterOptions:
    start: Optional[str] = None
    end: Optional[str] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    categories: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    account_ids: Tuple[str, ...] = ()
    transaction_types: Tuple[str, ...] = ()
    statuses: Tuple[str, ...] = ()
    search_term: str = ''

    def __post_init__(self) -> None:
        for name in ('categories', 'tags', 'account_ids', 'transaction_types', 'statuses'):
            object.__setattr__(self, name, _as_tuple(getattr(self, name)))
        unknown_types = set(self.transaction_types) - set(TRANSACTION_TYPES)
        if unknown_types:
            raise ValidationError(f"Unknown transaction types: {sorted(unknown_types)}")
        unknown_statuses = set(self.statuses) - set(TRANSACTION_STATUSES)
        if unknown_statuses:
            raise ValidationError(f"Unknown transaction statuses: {sorted(unknown_statuses)}")
        for name in ('start', 'end'):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, _date_text(value))
                parse_date(value)
        for name in ('min_amount', 'max_amount'):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, _finite(value, name))

    @property
    def is_empty(self) -> bool:
        return self == FilterOptions()
