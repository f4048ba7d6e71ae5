"""Interfaces of the services the core depends on but does not implement.

Persistence, real-time sync and authentication live outside this package.
The protocols below describe what the store needs from them;
:class:`InMemoryGateway` satisfies the persistence side for tests and the
demo dashboard.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from .errors import NotFoundError
from .filters import apply_filters
from .models import Account, Budget, FilterOptions, Transaction
from .state import FinancialStateStore, LoadAccounts, SetError, SetLoading

logger = logging.getLogger(__name__)

AccountsCallback = Callable[[Tuple[Account, ...]], None]


class PersistenceGateway(Protocol):
    """Source of accounts, transactions and budgets."""

    def get_accounts(self) -> Sequence[Account]:  # pragma: no cover - interface
        ...

    def get_transactions(
        self, account_id: Optional[str] = None, filters: Optional[FilterOptions] = None
    ) -> Sequence[Transaction]:  # pragma: no cover - interface
        ...

    def get_budgets(self, user_id: str) -> Sequence[Budget]:  # pragma: no cover - interface
        ...

    def get_budget(self, budget_id: str) -> Budget:  # pragma: no cover - interface
        """Raise :class:`NotFoundError` when ``budget_id`` is unknown."""
        ...

    def subscribe(self, callback: AccountsCallback) -> Callable[[], None]:  # pragma: no cover - interface
        """Call ``callback`` with the full account list on every change."""
        ...


class AuthProvider(Protocol):
    """Current-user lookup."""

    def current_user_id(self) -> Optional[str]:  # pragma: no cover - interface
        ...


class InMemoryGateway:
    """Dict-backed :class:`PersistenceGateway`."""

    def __init__(self, accounts: Iterable[Account] = (), budgets: Iterable[Budget] = ()):
        self._accounts: Dict[str, Account] = {a.id: a for a in accounts}
        self._budgets: Dict[str, Budget] = {b.id: b for b in budgets}
        self._subscribers: List[AccountsCallback] = []

    def get_accounts(self) -> Tuple[Account, ...]:
        return tuple(self._accounts.values())

    def get_transactions(
        self, account_id: Optional[str] = None, filters: Optional[FilterOptions] = None
    ) -> Tuple[Transaction, ...]:
        if account_id is not None:
            if account_id not in self._accounts:
                raise NotFoundError(f"Account '{account_id}' not found", details={'account_id': account_id})
            transactions = self._accounts[account_id].transactions
        else:
            transactions = tuple(t for a in self._accounts.values() for t in a.transactions)
        return apply_filters(transactions, filters)

    def get_budgets(self, user_id: str) -> Tuple[Budget, ...]:
        return tuple(b for b in self._budgets.values() if b.user_id == user_id)

    def get_budget(self, budget_id: str) -> Budget:
        try:
            return self._budgets[budget_id]
        except KeyError as e:
            raise NotFoundError(f"Budget '{budget_id}' not found", details={'budget_id': budget_id}) from e

    def save_account(self, account: Account) -> None:
        self._accounts[account.id] = account
        self._publish()

    def save_budget(self, budget: Budget) -> None:
        self._budgets[budget.id] = budget

    def subscribe(self, callback: AccountsCallback) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self) -> None:
        accounts = self.get_accounts()
        for callback in list(self._subscribers):
            callback(accounts)


def attach_store(store: FinancialStateStore, gateway: PersistenceGateway) -> Callable[[], None]:
    """Load the gateway's accounts into ``store`` and keep them in sync.

    A failing initial load is recorded on the state as ``error`` and then
    re-raised.  Returns the gateway unsubscribe callable.
    """
    store.dispatch(SetLoading(True))
    try:
        accounts = tuple(gateway.get_accounts())
    except Exception as e:
        logger.error('Loading accounts failed: %s', e)
        store.dispatch(SetError(str(e)))
        raise
    store.dispatch(LoadAccounts(accounts))
    logger.info('Loaded %d accounts into the store', len(accounts))
    return gateway.subscribe(lambda latest: store.dispatch(LoadAccounts(latest)))
