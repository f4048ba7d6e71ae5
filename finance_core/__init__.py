"""Top-level package for the finance aggregation core.

Turns a transaction ledger plus a selected time window into period
summaries, trend series and budget progress.  The primary modules are:

* ``periods`` - resolution of a period selector into date windows
* ``filters`` - pure transaction predicates and sorting
* ``summary`` - income, expenses and ratios with a previous-period comparison
* ``trends`` - fixed-length bucketed series for charts
* ``budgets`` - spent/remaining/projected budget progress
* ``state`` - the reducer-style store that drives recomputation

``visualization`` (Plotly) and ``dashboard`` (Streamlit) sit on top of the
core and are not imported here.  To run the dashboard::

    streamlit run finance_core/dashboard.py
"""

from . import budgets, filters, periods, summary, trends  # noqa: F401  # re-exported for convenience
from .config import EngineConfig, get_config, load_config
from .errors import FinanceError, NotFoundError, ValidationError
from .models import (
    Account,
    AccountPartition,
    AccountType,
    Budget,
    BudgetAlert,
    BudgetProgress,
    BudgetSummary,
    CustomDateRange,
    FilterOptions,
    FinancialSummary,
    PeriodBoundary,
    Screen,
    TimePeriod,
    Transaction,
)
from .state import FinancialState, FinancialStateStore, reduce

__all__ = [
    "budgets",
    "filters",
    "periods",
    "summary",
    "trends",
    "EngineConfig",
    "get_config",
    "load_config",
    "FinanceError",
    "NotFoundError",
    "ValidationError",
    "Account",
    "AccountPartition",
    "AccountType",
    "Budget",
    "BudgetAlert",
    "BudgetProgress",
    "BudgetSummary",
    "CustomDateRange",
    "FilterOptions",
    "FinancialSummary",
    "PeriodBoundary",
    "Screen",
    "TimePeriod",
    "Transaction",
    "FinancialState",
    "FinancialStateStore",
    "reduce",
]
