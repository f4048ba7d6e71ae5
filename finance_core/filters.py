"""Pure transaction predicates and sorting.

Every function returns a new tuple, keeps the input order (except
:func:`sort_transactions`, whose job is to reorder), and never mutates its
arguments.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Optional, Sequence, Tuple

from .models import (
    CLEARED,
    EXPENSE,
    INCOME,
    PENDING,
    Account,
    AccountPartition,
    FilterOptions,
    Transaction,
    parse_date,
)

SORT_OPTIONS = ('date-desc', 'date-asc', 'amount-desc', 'amount-asc', 'merchant-asc', 'merchant-desc')


def by_date_range(
    transactions: Iterable[Transaction],
    start: Optional[Any] = None,
    end: Optional[Any] = None,
) -> Tuple[Transaction, ...]:
    """Transactions dated within ``[start, end]``; an open bound is ignored."""
    lower: Optional[datetime] = parse_date(start) if start is not None else None
    upper: Optional[datetime] = parse_date(end) if end is not None else None
    return tuple(
        t for t in transactions
        if (lower is None or t.timestamp >= lower) and (upper is None or t.timestamp <= upper)
    )


def filter_accounts(accounts: Iterable[Account], partition: AccountPartition | str) -> Tuple[Account, ...]:
    """Accounts in the personal/business partition (``both`` keeps all)."""
    partition = AccountPartition.coerce(partition)
    if partition is AccountPartition.BOTH:
        return tuple(accounts)
    want_business = partition is AccountPartition.BUSINESS
    return tuple(a for a in accounts if a.is_business == want_business)


def by_account_partition(accounts: Iterable[Account], partition: AccountPartition | str) -> Tuple[Transaction, ...]:
    """Flattened transactions of the accounts in ``partition``."""
    return tuple(t for account in filter_accounts(accounts, partition) for t in account.transactions)


def by_category(transactions: Iterable[Transaction], categories: str | Iterable[str]) -> Tuple[Transaction, ...]:
    wanted = {categories} if isinstance(categories, str) else set(categories)
    if not wanted:
        return tuple(transactions)
    return tuple(t for t in transactions if t.category in wanted)


def by_tags(transactions: Iterable[Transaction], tags: str | Iterable[str]) -> Tuple[Transaction, ...]:
    """Transactions carrying at least one of ``tags``."""
    wanted = {tags} if isinstance(tags, str) else set(tags)
    if not wanted:
        return tuple(transactions)
    return tuple(t for t in transactions if wanted.intersection(t.tags))


def by_search_term(transactions: Iterable[Transaction], term: Optional[str]) -> Tuple[Transaction, ...]:
    """Case-insensitive substring match on description, merchant, category and tags."""
    if not term or not term.strip():
        return tuple(transactions)
    needle = term.strip().lower()

    def _matches(t: Transaction) -> bool:
        haystack = (t.description, t.merchant, t.merchant_original, t.category) + t.tags
        return any(needle in value.lower() for value in haystack)

    return tuple(t for t in transactions if _matches(t))


def by_amount_range(
    transactions: Iterable[Transaction],
    min_amount: Optional[float] = None,
    max_amount: Optional[float] = None,
) -> Tuple[Transaction, ...]:
    return tuple(
        t for t in transactions
        if (min_amount is None or t.amount >= min_amount) and (max_amount is None or t.amount <= max_amount)
    )


def by_transaction_type(transactions: Iterable[Transaction], types: Iterable[str]) -> Tuple[Transaction, ...]:
    wanted = set(types)
    if not wanted:
        return tuple(transactions)
    return tuple(
        t for t in transactions
        if (INCOME in wanted and t.is_income) or (EXPENSE in wanted and t.is_expense)
    )


def by_status(transactions: Iterable[Transaction], statuses: Iterable[str]) -> Tuple[Transaction, ...]:
    wanted = set(statuses)
    if not wanted:
        return tuple(transactions)
    return tuple(
        t for t in transactions
        if (PENDING in wanted and t.pending) or (CLEARED in wanted and not t.pending)
    )


def by_account_ids(transactions: Iterable[Transaction], account_ids: Iterable[str]) -> Tuple[Transaction, ...]:
    wanted = set(account_ids)
    if not wanted:
        return tuple(transactions)
    return tuple(t for t in transactions if t.account_id in wanted)


def apply_filters(transactions: Iterable[Transaction], filters: Optional[FilterOptions]) -> Tuple[Transaction, ...]:
    """Apply every criterion set on ``filters``; empty criteria are skipped."""
    result = tuple(transactions)
    if filters is None or filters.is_empty:
        return result
    if filters.start is not None or filters.end is not None:
        result = by_date_range(result, filters.start, filters.end)
    if filters.min_amount is not None or filters.max_amount is not None:
        result = by_amount_range(result, filters.min_amount, filters.max_amount)
    result = by_category(result, filters.categories)
    result = by_tags(result, filters.tags)
    result = by_account_ids(result, filters.account_ids)
    result = by_transaction_type(result, filters.transaction_types)
    result = by_status(result, filters.statuses)
    return by_search_term(result, filters.search_term)


def sort_transactions(transactions: Sequence[Transaction], sort_by: str) -> Tuple[Transaction, ...]:
    """Stable sort by one of :data:`SORT_OPTIONS`; unknown keys keep input order."""
    if sort_by == 'date-desc':
        return tuple(sorted(transactions, key=lambda t: t.timestamp, reverse=True))
    if sort_by == 'date-asc':
        return tuple(sorted(transactions, key=lambda t: t.timestamp))
    if sort_by == 'amount-desc':
        return tuple(sorted(transactions, key=lambda t: abs(t.amount), reverse=True))
    if sort_by == 'amount-asc':
        return tuple(sorted(transactions, key=lambda t: abs(t.amount)))
    if sort_by == 'merchant-asc':
        return tuple(sorted(transactions, key=lambda t: t.merchant.lower()))
    if sort_by == 'merchant-desc':
        return tuple(sorted(transactions, key=lambda t: t.merchant.lower(), reverse=True))
    return tuple(transactions)
