"""Plotly figures for the values computed by the core.

Each function takes one of the records or frames produced by
:mod:`summary`, :mod:`trends` or :mod:`budgets` and returns a
``plotly.graph_objects.Figure`` that Streamlit renders via
``st.plotly_chart``.  The core modules never import this one; it is only
used by the dashboard driver.
"""

from __future__ import annotations

from typing import Dict, Iterable, Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .models import Budget, BudgetProgress, FinancialSummary
from .trends import TrendSeries

INCOME_COLOR = '#2ca02c'
EXPENSE_COLOR = '#d62728'
NET_COLOR = '#1f77b4'
BUDGET_COLOR = '#1f77b4'
ACTUAL_COLOR = '#ff7f0e'


def _empty_figure(title: str = "No data to display") -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title=title)
    return fig


def create_trend_chart(trends: TrendSeries, series: str = 'balance', title: str | None = None) -> go.Figure:
    """Line chart of one trend series.

    Parameters
    ----------
    trends : TrendSeries
        Output of :func:`finance_core.trends.generate`.
    series : str
        ``balance``, ``income``, ``expenses`` or ``savings``.
    title : str, optional
        Chart title.  Defaults to the series and resolution name.

    Returns
    -------
    plotly.graph_objects.Figure
        Interactive line chart with one point per bucket.
    """
    data = trends.chart_data(series)
    if not data['values']:
        return _empty_figure()
    df = pd.DataFrame({'Period': data['labels'], 'Value': data['values']})
    fig = px.line(df, x='Period', y='Value', markers=True)
    fig.update_layout(
        title=title or f"{series.title()} ({trends.resolution})",
        xaxis_title='Period',
        yaxis_title='Savings Rate (%)' if series == 'savings' else 'Amount ($)',
        hovermode='x unified',
    )
    return fig


def create_income_expense_chart(trends: TrendSeries, title: str | None = None) -> go.Figure:
    """Grouped income/expense bars per bucket with a net line overlay."""
    if not len(trends):
        return _empty_figure()
    labels = list(trends.labels)
    net = [round(i - e, 2) for i, e in zip(trends.income, trends.expenses)]
    fig = go.Figure()
    fig.add_trace(go.Bar(name='Income', x=labels, y=list(trends.income), marker_color=INCOME_COLOR))
    fig.add_trace(go.Bar(name='Expenses', x=labels, y=list(trends.expenses), marker_color=EXPENSE_COLOR))
    fig.add_trace(go.Scatter(name='Net', x=labels, y=net, mode='lines+markers', yaxis='y2',
                             line=dict(color=NET_COLOR)))
    fig.update_layout(
        title=title or "Income vs Expenses (Net overlay)",
        xaxis_title='Period',
        yaxis_title='Amount ($)',
        barmode='group',
        hovermode='x unified',
        yaxis2=dict(title='Net ($)', overlaying='y', side='right', showgrid=False),
    )
    return fig


def create_category_pie_chart(spending: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Pie chart of :func:`finance_core.summary.category_spending`.

    Parameters
    ----------
    spending : pandas.DataFrame
        Frame indexed by category with a ``Total_Spent`` column.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Pie chart.
    """
    if spending.empty:
        return _empty_figure()
    df = spending.reset_index()[['Category', 'Total_Spent']]
    fig = px.pie(df, names='Category', values='Total_Spent',
                 color_discrete_sequence=px.colors.qualitative.Set3)
    fig.update_layout(title=title or "Spending by category")
    return fig


def create_budget_chart(
    budgets: Sequence[Budget],
    progress: Iterable[BudgetProgress],
    title: str | None = None,
) -> go.Figure:
    """Budget vs actual bars, one pair per budget category."""
    by_id: Dict[str, BudgetProgress] = {p.budget_id: p for p in progress}
    rows = [(b.category, b.amount, by_id[b.id].spent) for b in budgets if b.id in by_id]
    if not rows:
        return _empty_figure("No budgets to display")
    categories, amounts, spent = zip(*rows)
    fig = go.Figure()
    fig.add_trace(go.Bar(name='Budget', x=list(categories), y=list(amounts), marker_color=BUDGET_COLOR))
    fig.add_trace(go.Bar(name='Actual', x=list(categories), y=list(spent), marker_color=ACTUAL_COLOR))
    fig.update_layout(
        title=title or "Budget vs Actual",
        xaxis_title='Category',
        yaxis_title='Amount ($)',
        barmode='group',
    )
    return fig


def create_ratios_bar_chart(summary: FinancialSummary, title: str | None = None) -> go.Figure:
    """Savings rate and debt-to-income ratio of a summary, as percentages."""
    df = pd.DataFrame(
        [('Savings Rate', summary.savings_rate * 100),
         ('Debt to Income', summary.debt_to_income_ratio * 100)],
        columns=['Ratio', 'Value'],
    )
    fig = px.bar(df, x='Ratio', y='Value')
    fig.update_layout(
        title=title or f"Financial ratios ({summary.period_label})",
        xaxis_title='Ratio',
        yaxis_title='Percent',
    )
    return fig
