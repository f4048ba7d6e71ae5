from datetime import datetime

import pytest

from finance_core.collaborators import InMemoryGateway, PersistenceGateway, attach_store
from finance_core.config import EngineConfig
from finance_core.errors import NotFoundError
from finance_core.models import Account, Budget, FilterOptions, Transaction
from finance_core.state import FinancialState, FinancialStateStore

REF = datetime(2025, 9, 15, 12, 0)


def _account(account_id='acc_checking', balance=100.0):
    txns = (
        Transaction('t1', account_id, -20.0, '2025-09-10', 'Shopping'),
        Transaction('t2', account_id, 300.0, '2025-09-11', 'Income'),
    )
    return Account(account_id, 'Checking', 'CHECKING', balance, txns)


def _gateway():
    budget = Budget('b1', 'Shopping', 200.0, 'month', '2025-09-01', '2025-09-30', user_id='u1')
    return InMemoryGateway([_account()], [budget])


def _empty_store():
    return FinancialStateStore(FinancialState(), config=EngineConfig(), clock=lambda: REF)


def test_gateway_lookups():
    gateway: PersistenceGateway = _gateway()
    assert [a.id for a in gateway.get_accounts()] == ['acc_checking']
    assert [b.id for b in gateway.get_budgets('u1')] == ['b1']
    assert gateway.get_budgets('someone-else') == ()
    assert gateway.get_budget('b1').category == 'Shopping'
    with pytest.raises(NotFoundError):
        gateway.get_budget('missing')


def test_gateway_transactions_with_filters():
    gateway = _gateway()
    assert len(gateway.get_transactions()) == 2
    income = gateway.get_transactions('acc_checking', FilterOptions(transaction_types=['income']))
    assert [t.id for t in income] == ['t2']
    with pytest.raises(NotFoundError):
        gateway.get_transactions('acc_missing')


def test_attach_store_loads_and_syncs():
    gateway = _gateway()
    store = _empty_store()
    unsubscribe = attach_store(store, gateway)
    assert [a.id for a in store.state.accounts] == ['acc_checking']
    assert not store.state.is_loading

    gateway.save_account(_account('acc_other', 50.0))
    assert [a.id for a in store.state.accounts] == ['acc_checking', 'acc_other']

    unsubscribe()
    gateway.save_account(_account('acc_third', 1.0))
    assert len(store.state.accounts) == 2


def test_attach_store_records_load_failure():
    class BrokenGateway(InMemoryGateway):
        def get_accounts(self):
            raise ConnectionError('database unavailable')

    store = _empty_store()
    with pytest.raises(ConnectionError):
        attach_store(store, BrokenGateway())
    assert store.state.error == 'database unavailable'
    assert not store.state.is_loading
