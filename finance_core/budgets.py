"""Budget progress: spent, remaining, percentage used and projected spend.

Spending is always recomputed from the ledger: the expenses of the budget's
category dated inside ``[budget.start, budget.end]``.  The ``spent`` value
stored on a :class:`~finance_core.models.Budget` is only a snapshot and is
refreshed with :func:`apply_progress` or :func:`refresh_budget`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional, Sequence, Tuple

import pandas as pd

from .config import EngineConfig, get_config
from .errors import NotFoundError
from .frames import transactions_frame
from .models import Budget, BudgetAlert, BudgetProgress, BudgetSummary, Transaction
from .periods import reference_now

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


def budget_spending(budget: Budget, transactions: Iterable[Transaction]) -> float:
    """Absolute expenses of ``budget.category`` inside the budget window."""
    frame = transactions_frame(transactions)
    mask = (
        (frame['category'] == budget.category)
        & (frame['amount'] < 0)
        & (frame['date'] >= pd.Timestamp(budget.start))
        & (frame['date'] <= pd.Timestamp(budget.end))
    )
    return round(abs(float(frame.loc[mask, 'amount'].sum())), 2)


def projection_window_days(budget: Budget, config: EngineConfig) -> int:
    """Length, in days, of the window projected spending is normalised over."""
    if config.projection_window == 'fixed':
        return config.fixed_projection_days
    # inclusive calendar days, so Sep 1 to Sep 30 is 30 days
    return (budget.end.date() - budget.start.date()).days + 1


def progress(
    budget: Budget,
    transactions: Iterable[Transaction],
    *,
    now: Optional[datetime] = None,
    config: Optional[EngineConfig] = None,
) -> BudgetProgress:
    """Live progress of ``budget`` against ``transactions``.

    ``projected_spending`` extrapolates the spend rate so far linearly over
    the days remaining.  When no part of the window has elapsed yet the
    projection is just the amount spent.
    """
    config = config or get_config()
    now = reference_now(now)

    spent = budget_spending(budget, transactions)
    remaining = round(budget.amount - spent, 2)
    percentage_used = spent * 100 / budget.amount if budget.amount > 0 else 0.0
    days_remaining = max(0, math.ceil((budget.end - now).total_seconds() / SECONDS_PER_DAY))

    elapsed = projection_window_days(budget, config) - days_remaining
    projected = spent + (spent / elapsed) * days_remaining if elapsed > 0 else spent

    logger.debug('Budget %s: spent %.2f of %.2f, %d days left', budget.id, spent, budget.amount, days_remaining)
    return BudgetProgress(
        budget_id=budget.id,
        spent=spent,
        remaining=remaining,
        percentage_used=percentage_used,
        is_over_budget=spent > budget.amount,
        days_remaining=days_remaining,
        projected_spending=round(projected, 2),
    )


def apply_progress(budget: Budget, result: BudgetProgress) -> Budget:
    """Copy of ``budget`` with ``spent``/``remaining`` taken from ``result``."""
    return replace(budget, spent=result.spent, remaining=round(budget.amount - result.spent, 2))


def evaluate_alerts(budget: Budget, result: BudgetProgress) -> Tuple[BudgetAlert, ...]:
    """Mark every alert whose threshold has been reached as triggered."""
    return tuple(
        alert if alert.triggered or result.percentage_used < alert.threshold
        else replace(alert, triggered=True)
        for alert in budget.alerts
    )


def refresh_budget(
    budget: Budget,
    transactions: Iterable[Transaction],
    *,
    now: Optional[datetime] = None,
    config: Optional[EngineConfig] = None,
) -> Budget:
    """Recompute spent/remaining and alert state for ``budget``."""
    result = progress(budget, transactions, now=now, config=config)
    return replace(apply_progress(budget, result), alerts=evaluate_alerts(budget, result))


def find_budget(budgets: Iterable[Budget], budget_id: str) -> Budget:
    for budget in budgets:
        if budget.id == budget_id:
            return budget
    raise NotFoundError(f"Budget '{budget_id}' not found", details={'budget_id': budget_id})


def progress_for(
    budget_id: str,
    budgets: Iterable[Budget],
    transactions: Iterable[Transaction],
    *,
    now: Optional[datetime] = None,
    config: Optional[EngineConfig] = None,
) -> BudgetProgress:
    """Progress of the budget with ``budget_id``.

    Raises:
        NotFoundError: if no budget has that id.
    """
    return progress(find_budget(budgets, budget_id), transactions, now=now, config=config)


def budget_summary(
    budgets: Sequence[Budget],
    transactions: Iterable[Transaction],
    *,
    now: Optional[datetime] = None,
    config: Optional[EngineConfig] = None,
) -> BudgetSummary:
    """Totals across the active budgets, with spending taken from the ledger."""
    ledger = tuple(transactions)
    refreshed = [
        refresh_budget(budget, ledger, now=now, config=config)
        for budget in budgets if budget.is_active
    ]
    total_budgeted = round(sum(b.amount for b in refreshed), 2)
    total_spent = round(sum(b.spent for b in refreshed), 2)
    return BudgetSummary(
        total_budgets=len(refreshed),
        total_budgeted=total_budgeted,
        total_spent=total_spent,
        total_remaining=round(total_budgeted - total_spent, 2),
        over_budget_categories=tuple(b.category for b in refreshed if b.spent > b.amount),
        upcoming_alerts=tuple(alert for b in refreshed for alert in b.alerts if not alert.triggered),
    )
