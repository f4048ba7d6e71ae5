"""Streamlit driver for the finance core.

Holds one :class:`~finance_core.state.FinancialStateStore` per browser
session, turns sidebar selections into dispatched actions and renders the
derived views with the figures from :mod:`visualization`.

To run the dashboard from the command line::

    streamlit run finance_core/dashboard.py

or use ``run_dashboard.py`` at the repository root.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import date
from typing import Dict, List, MutableMapping

import pandas as pd
import streamlit as st

if __package__:
    from . import visualization as viz
    from .config import configure_logging, get_config
    from .models import AccountPartition, CustomDateRange, FinancialSummary, TimePeriod
    from .periods import period_label
    from .state import FinancialStateStore
    from .summary import category_spending, transaction_stats
else:
    # ``streamlit run finance_core/dashboard.py`` executes this file as a script
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from finance_core import visualization as viz  # type: ignore
    from finance_core.config import configure_logging, get_config  # type: ignore
    from finance_core.models import AccountPartition, CustomDateRange, FinancialSummary, TimePeriod  # type: ignore
    from finance_core.periods import period_label  # type: ignore
    from finance_core.state import FinancialStateStore  # type: ignore
    from finance_core.summary import category_spending, transaction_stats  # type: ignore

logger = logging.getLogger(__name__)

STORE_KEY = 'finance_store'

PERIOD_OPTIONS = {
    'Today': TimePeriod.DAY,
    'This Week': TimePeriod.WEEK,
    'This Month': TimePeriod.MONTH,
    'This Quarter': TimePeriod.QUARTER,
    'This Year': TimePeriod.YEAR,
    'Last 5 Years': TimePeriod.FIVE_YEAR,
    'Custom Range': TimePeriod.CUSTOM,
}

PARTITION_OPTIONS = {
    'Personal': AccountPartition.PERSONAL,
    'Business': AccountPartition.BUSINESS,
    'Both': AccountPartition.BOTH,
}


def _ensure_store(session_state: MutableMapping) -> FinancialStateStore:
    """Return the session's store, creating it on the first run."""
    store = session_state.get(STORE_KEY)
    if store is None:
        store = FinancialStateStore(config=get_config())
        session_state[STORE_KEY] = store
        logger.info('Created financial state store for new session')
    return store


def kpi_cards(summary: FinancialSummary, period: TimePeriod | str) -> List[Dict[str, str]]:
    """Label/value/delta triples for the ``st.metric`` row."""
    title = period_label(period)
    return [
        {'label': 'Total Balance', 'value': f"${summary.total_balance:,.2f}", 'delta': None},
        {'label': f"Income ({title})", 'value': f"${summary.period_income:,.2f}",
         'delta': f"{summary.income_change:+.1f}%"},
        {'label': f"Expenses ({title})", 'value': f"${summary.period_expenses:,.2f}",
         'delta': f"{summary.expense_change:+.1f}%"},
        {'label': 'Savings Rate', 'value': f"{summary.savings_rate * 100:.1f}%", 'delta': None},
    ]


def render_sidebar(store: FinancialStateStore) -> None:
    state = store.state
    st.sidebar.header("View")

    partition_names = list(PARTITION_OPTIONS)
    current_partition = next(k for k, v in PARTITION_OPTIONS.items() if v is state.account_filter)
    partition = st.sidebar.radio("Accounts", partition_names, index=partition_names.index(current_partition))
    if PARTITION_OPTIONS[partition] is not state.account_filter:
        store.set_account_filter(PARTITION_OPTIONS[partition])

    period_names = list(PERIOD_OPTIONS)
    current_period = next(k for k, v in PERIOD_OPTIONS.items() if v is state.selected_period)
    choice = st.sidebar.selectbox("Period", period_names, index=period_names.index(current_period))
    selected = PERIOD_OPTIONS[choice]

    if selected is TimePeriod.CUSTOM:
        today = date.today()
        selection = st.sidebar.date_input("Date range", value=(today.replace(day=1), today))
        # A single date is returned while the second end is still being picked
        if not isinstance(selection, (tuple, list)) or len(selection) != 2:
            return
        start, end = selection
        if start <= end:
            date_range = CustomDateRange(start.isoformat(), end.isoformat(),
                                         f"{start:%b %d} - {end:%b %d, %Y}")
            if date_range != state.custom_date_range or state.selected_period is not TimePeriod.CUSTOM:
                store.set_custom_date_range(date_range)
        else:
            st.sidebar.warning("Start date must be on or before the end date.")
    elif selected is not state.selected_period:
        store.change_period(selected)


def render_overview(store: FinancialStateStore) -> None:
    view = store.dashboard()
    st.subheader("📊 Financial Overview")
    for column, card in zip(st.columns(4), kpi_cards(view.summary, view.trends.period)):
        with column:
            st.metric(label=card['label'], value=card['value'], delta=card['delta'])

    st.plotly_chart(viz.create_trend_chart(view.trends, 'balance'), width='stretch')
    st.plotly_chart(viz.create_income_expense_chart(view.trends), width='stretch')

    transactions = [t for account in view.accounts for t in account.transactions]
    spending = category_spending(transactions)
    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(viz.create_category_pie_chart(spending), width='stretch')
    with col2:
        st.plotly_chart(viz.create_ratios_bar_chart(view.summary), width='stretch')
    st.caption(f"{transaction_stats(transactions)['total_count']} transactions across {len(view.accounts)} accounts")


def render_transactions(store: FinancialStateStore) -> None:
    st.subheader("📋 Transactions")
    rows = store.visible_transactions()
    if not rows:
        st.info("No transactions match the current filters.")
        return
    st.dataframe(pd.DataFrame([
        {'Date': t.date, 'Merchant': t.merchant, 'Category': t.category,
         'Amount': t.amount, 'Tags': ', '.join(t.tags), 'Pending': t.pending}
        for t in rows
    ]))


def main() -> None:
    """Entry point for the Streamlit app."""
    configure_logging()
    st.set_page_config(page_title="Finance Dashboard", page_icon="💰", layout="wide",
                       initial_sidebar_state="expanded")
    st.title("💰 Finance Dashboard")

    store = _ensure_store(st.session_state)
    render_sidebar(store)
    if store.state.error:
        st.error(store.state.error)

    overview_tab, transactions_tab = st.tabs(["Dashboard", "Transactions"])
    with overview_tab:
        render_overview(store)
    with transactions_tab:
        render_transactions(store)


if __name__ == "__main__":  # pragma: no cover
    main()
