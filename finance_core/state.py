"""Reducer-style state machine for the dashboard session.

:class:`FinancialState` is immutable; it only changes by dispatching one of
the action records below through :func:`reduce`.  Everything shown on
screen (summary KPIs, trend series, filtered transaction lists, budget
progress) is derived from the state by the pure functions of the other
modules and is never stored on it.

Accounts carry their own transactions and the state also keeps a flat
``transactions`` tuple.  Actions that touch transactions (tagging,
connecting an account, adding a transaction) update both views together.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from functools import lru_cache
from typing import Callable, List, Optional, Tuple, Union

from .budgets import progress
from .config import EngineConfig, get_config
from .errors import NotFoundError, ValidationError
from .filters import SORT_OPTIONS, apply_filters, filter_accounts, sort_transactions
from .models import (
    Account,
    AccountPartition,
    Budget,
    BudgetProgress,
    CustomDateRange,
    FilterOptions,
    FinancialSummary,
    Screen,
    TimePeriod,
    Transaction,
)
from .periods import coerce_range, reference_now
from .seed import mock_accounts
from .summary import accounts_balance, summarize
from .trends import TrendSeries, generate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FinancialState:
    accounts: Tuple[Account, ...] = ()
    transactions: Tuple[Transaction, ...] = ()
    selected_account: Optional[str] = None
    current_screen: Screen = Screen.DASHBOARD
    selected_period: TimePeriod = TimePeriod.MONTH
    custom_date_range: Optional[CustomDateRange] = None
    filters: FilterOptions = FilterOptions()
    sort_by: str = 'date-desc'
    account_filter: AccountPartition = AccountPartition.PERSONAL
    is_loading: bool = False
    error: Optional[str] = None

    def account(self, account_id: str) -> Account:
        for account in self.accounts:
            if account.id == account_id:
                return account
        raise NotFoundError(f"Account '{account_id}' not found", details={'account_id': account_id})


def state_from_accounts(accounts: Tuple[Account, ...], **overrides) -> FinancialState:
    """State holding ``accounts`` with the flat transaction view built from them."""
    accounts = tuple(accounts)
    return FinancialState(
        accounts=accounts,
        transactions=tuple(t for account in accounts for t in account.transactions),
        **overrides,
    )


def default_state(reference_date: Optional[datetime] = None) -> FinancialState:
    """Seeded demo accounts, ``month`` period, dashboard screen."""
    return state_from_accounts(mock_accounts(reference_date))


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ViewAccountDetail:
    account_id: str


@dataclass(frozen=True)
class SelectAccount:
    account_id: Optional[str]


@dataclass(frozen=True)
class ChangeScreen:
    screen: Screen

    def __post_init__(self) -> None:
        object.__setattr__(self, 'screen', Screen.coerce(self.screen))


@dataclass(frozen=True)
class ChangePeriod:
    period: TimePeriod

    def __post_init__(self) -> None:
        object.__setattr__(self, 'period', TimePeriod.coerce(self.period))


@dataclass(frozen=True)
class SetCustomDateRange:
    date_range: CustomDateRange

    def __post_init__(self) -> None:
        date_range = coerce_range(self.date_range)
        if date_range is None:
            raise ValidationError('SetCustomDateRange requires a date range')
        object.__setattr__(self, 'date_range', date_range)


@dataclass(frozen=True)
class AddTag:
    transaction_id: str
    tag: str

    def __post_init__(self) -> None:
        if not self.tag or not self.tag.strip():
            raise ValidationError('Tag must not be empty')
        object.__setattr__(self, 'tag', self.tag.strip())


@dataclass(frozen=True)
class RemoveTag:
    transaction_id: str
    tag: str

    def __post_init__(self) -> None:
        object.__setattr__(self, 'tag', self.tag.strip())


@dataclass(frozen=True)
class ConnectAccount:
    account: Account


@dataclass(frozen=True)
class AddTransaction:
    transaction: Transaction


@dataclass(frozen=True)
class LoadAccounts:
    accounts: Tuple[Account, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, 'accounts', tuple(self.accounts))


@dataclass(frozen=True)
class ApplyFilters:
    filters: FilterOptions


@dataclass(frozen=True)
class SetAccountFilter:
    partition: AccountPartition

    def __post_init__(self) -> None:
        object.__setattr__(self, 'partition', AccountPartition.coerce(self.partition))


@dataclass(frozen=True)
class SetSortBy:
    sort_by: str

    def __post_init__(self) -> None:
        if self.sort_by not in SORT_OPTIONS:
            raise ValidationError(f"Unknown sort option '{self.sort_by}'")


@dataclass(frozen=True)
class SetLoading:
    is_loading: bool


@dataclass(frozen=True)
class SetError:
    error: Optional[str]


Action = Union[
    ViewAccountDetail, SelectAccount, ChangeScreen, ChangePeriod, SetCustomDateRange,
    AddTag, RemoveTag, ConnectAccount, AddTransaction, LoadAccounts, ApplyFilters,
    SetAccountFilter, SetSortBy, SetLoading, SetError,
]


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------


def _retag(state: FinancialState, transaction_id: str,
           update: Callable[[Transaction], Transaction]) -> FinancialState:
    """Apply ``update`` to one transaction in both the account and flat views."""
    if not any(t.id == transaction_id for t in state.transactions):
        logger.warning("Ignoring tag change for unknown transaction '%s'", transaction_id)
        return state

    def _swap(transactions: Tuple[Transaction, ...]) -> Tuple[Transaction, ...]:
        return tuple(update(t) if t.id == transaction_id else t for t in transactions)

    flat = _swap(state.transactions)
    # with_tag/without_tag return the same object when nothing changes
    if all(new is old for new, old in zip(flat, state.transactions)):
        return state
    accounts = tuple(
        replace(account, transactions=_swap(account.transactions))
        if any(t.id == transaction_id for t in account.transactions) else account
        for account in state.accounts
    )
    return replace(state, accounts=accounts, transactions=flat)


def reduce(state: FinancialState, action: Action) -> FinancialState:
    """Return the state that follows ``state`` once ``action`` is applied.

    Actions that change nothing (re-adding a tag, removing an absent tag)
    return ``state`` itself.

    Raises:
        ValidationError: unknown action type or duplicate account id.
        NotFoundError: the action names an account that does not exist.
    """
    if isinstance(action, ViewAccountDetail):
        state.account(action.account_id)
        return replace(state, selected_account=action.account_id, current_screen=Screen.ACCOUNT_DETAIL)

    if isinstance(action, SelectAccount):
        if action.account_id is not None:
            state.account(action.account_id)
        return replace(state, selected_account=action.account_id)

    if isinstance(action, ChangeScreen):
        return replace(state, current_screen=action.screen)

    if isinstance(action, ChangePeriod):
        return replace(state, selected_period=action.period)

    if isinstance(action, SetCustomDateRange):
        return replace(state, selected_period=TimePeriod.CUSTOM, custom_date_range=action.date_range)

    if isinstance(action, AddTag):
        return _retag(state, action.transaction_id, lambda t: t.with_tag(action.tag))

    if isinstance(action, RemoveTag):
        return _retag(state, action.transaction_id, lambda t: t.without_tag(action.tag))

    if isinstance(action, ConnectAccount):
        account = action.account
        if any(a.id == account.id for a in state.accounts):
            raise ValidationError(f"Account '{account.id}' is already connected")
        return replace(
            state,
            accounts=state.accounts + (account,),
            transactions=state.transactions + account.transactions,
        )

    if isinstance(action, AddTransaction):
        txn = action.transaction
        state.account(txn.account_id)
        if any(t.id == txn.id for t in state.transactions):
            raise ValidationError(f"Transaction '{txn.id}' already exists")
        accounts = tuple(
            replace(a, transactions=(txn,) + a.transactions) if a.id == txn.account_id else a
            for a in state.accounts
        )
        return replace(state, accounts=accounts, transactions=(txn,) + state.transactions)

    if isinstance(action, LoadAccounts):
        ids = {a.id for a in action.accounts}
        selected = state.selected_account if state.selected_account in ids else None
        loaded = state_from_accounts(action.accounts)
        return replace(
            state,
            accounts=loaded.accounts,
            transactions=loaded.transactions,
            selected_account=selected,
            is_loading=False,
        )

    if isinstance(action, ApplyFilters):
        return replace(state, filters=action.filters)

    if isinstance(action, SetAccountFilter):
        return replace(state, account_filter=action.partition)

    if isinstance(action, SetSortBy):
        return replace(state, sort_by=action.sort_by)

    if isinstance(action, SetLoading):
        return replace(state, is_loading=bool(action.is_loading))

    if isinstance(action, SetError):
        return replace(state, error=action.error, is_loading=False)

    raise ValidationError(f"Unknown action: {type(action).__name__}")


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DashboardView:
    accounts: Tuple[Account, ...]
    total_balance: float
    summary: FinancialSummary
    trends: TrendSeries


@lru_cache(maxsize=64)
def build_dashboard_view(
    accounts: Tuple[Account, ...],
    account_filter: AccountPartition,
    period: TimePeriod,
    custom_range: Optional[CustomDateRange],
    reference_date: datetime,
    config: EngineConfig,
) -> DashboardView:
    """Summary and trends of the accounts in ``account_filter``.

    Memoised on its arguments, all of which are immutable records.
    """
    visible = filter_accounts(accounts, account_filter)
    transactions = tuple(t for account in visible for t in account.transactions)
    balance = accounts_balance(visible)
    logger.debug('Recomputing dashboard: %d accounts, period %s', len(visible), period.value)
    return DashboardView(
        accounts=visible,
        total_balance=balance,
        summary=summarize(transactions, period, custom_range, balance,
                          reference_date=reference_date, config=config),
        trends=generate(transactions, period, custom_range,
                        reference_date=reference_date, config=config),
    )


Listener = Callable[[FinancialState], None]


class FinancialStateStore:
    """Holds the current :class:`FinancialState` and notifies subscribers.

    Args:
        initial_state: Starting state (defaults to the seeded demo accounts).
        config: Engine switches used for every derived view.
        clock: Zero-argument callable returning "now"; used when a view is
            requested without an explicit reference date.
    """

    def __init__(
        self,
        initial_state: Optional[FinancialState] = None,
        *,
        config: Optional[EngineConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._config = config or get_config()
        self._clock = clock or datetime.now
        self._state = initial_state if initial_state is not None else default_state(self._clock())
        self._listeners: List[Listener] = []

    @property
    def state(self) -> FinancialState:
        return self._state

    @property
    def config(self) -> EngineConfig:
        return self._config

    def dispatch(self, action: Action) -> FinancialState:
        new_state = reduce(self._state, action)
        if new_state is self._state:
            logger.debug('%s left the state unchanged', type(action).__name__)
            return new_state
        logger.debug('Dispatched %s', type(action).__name__)
        self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)
        return new_state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after every state change; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- convenience dispatchers ------------------------------------------------

    def view_account_detail(self, account_id: str) -> FinancialState:
        return self.dispatch(ViewAccountDetail(account_id))

    def select_account(self, account_id: Optional[str]) -> FinancialState:
        return self.dispatch(SelectAccount(account_id))

    def change_screen(self, screen: Screen | str) -> FinancialState:
        return self.dispatch(ChangeScreen(screen))

    def change_period(self, period: TimePeriod | str) -> FinancialState:
        return self.dispatch(ChangePeriod(period))

    def set_custom_date_range(self, date_range: CustomDateRange | dict) -> FinancialState:
        return self.dispatch(SetCustomDateRange(date_range))

    def add_tag(self, transaction_id: str, tag: str) -> FinancialState:
        return self.dispatch(AddTag(transaction_id, tag))

    def remove_tag(self, transaction_id: str, tag: str) -> FinancialState:
        return self.dispatch(RemoveTag(transaction_id, tag))

    def connect_account(self, account: Account) -> FinancialState:
        return self.dispatch(ConnectAccount(account))

    def add_transaction(self, transaction: Transaction) -> FinancialState:
        return self.dispatch(AddTransaction(transaction))

    def load_accounts(self, accounts: Tuple[Account, ...]) -> FinancialState:
        return self.dispatch(LoadAccounts(accounts))

    def apply_filters(self, filters: FilterOptions) -> FinancialState:
        return self.dispatch(ApplyFilters(filters))

    def set_account_filter(self, partition: AccountPartition | str) -> FinancialState:
        return self.dispatch(SetAccountFilter(partition))

    def set_sort_by(self, sort_by: str) -> FinancialState:
        return self.dispatch(SetSortBy(sort_by))

    def set_loading(self, is_loading: bool) -> FinancialState:
        return self.dispatch(SetLoading(is_loading))

    def set_error(self, error: Optional[str]) -> FinancialState:
        return self.dispatch(SetError(error))

    # -- derived views --------------------------------------------------------

    def _reference(self, reference_date: Optional[datetime]) -> datetime:
        if reference_date is not None:
            return reference_now(reference_date)
        # clock readings are truncated to the minute so repeated views share a cache entry
        return self._clock().replace(second=0, microsecond=0)

    def dashboard(self, reference_date: Optional[datetime] = None) -> DashboardView:
        state = self._state
        return build_dashboard_view(
            state.accounts,
            state.account_filter,
            state.selected_period,
            state.custom_date_range,
            self._reference(reference_date),
            self._config,
        )

    def summary(self, reference_date: Optional[datetime] = None) -> FinancialSummary:
        return self.dashboard(reference_date).summary

    def trends(self, reference_date: Optional[datetime] = None) -> TrendSeries:
        return self.dashboard(reference_date).trends

    def account_summary(self, account_id: str, reference_date: Optional[datetime] = None) -> FinancialSummary:
        """Summary of a single account over the selected period."""
        account = self._state.account(account_id)
        return summarize(
            account.transactions,
            self._state.selected_period,
            self._state.custom_date_range,
            account.balance,
            reference_date=self._reference(reference_date),
            config=self._config,
        )

    def visible_transactions(self) -> Tuple[Transaction, ...]:
        """Flat transaction list with the active filters and sort order applied."""
        filtered = apply_filters(self._state.transactions, self._state.filters)
        return sort_transactions(filtered, self._state.sort_by)

    def budget_progress(self, budget: Budget, now: Optional[datetime] = None) -> BudgetProgress:
        return progress(budget, self._state.transactions, now=self._reference(now), config=self._config)
