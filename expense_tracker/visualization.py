"""Plotly figures for the ledger overview.

Each function accepts the pandas objects produced by :mod:`summary` and
returns a ``plotly.graph_objects.Figure`` that Streamlit renders via
``st.plotly_chart``.
"""

from __future__ import annotations

from typing import Any, Dict

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .config import CATEGORY_LABELS


def _empty_figure(title: str = "No expenses to display") -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title=title)
    return fig


def create_category_pie_chart(totals: pd.Series, title: str | None = None) -> go.Figure:
    """Pie chart of spending per category.

    Parameters
    ----------
    totals : pandas.Series
        Series indexed by category key with summed amounts, as returned
        by :func:`summary.category_totals`.
    title : str, optional
        Chart title.
    """
    nonzero = totals[totals > 0]
    if nonzero.empty:
        return _empty_figure()
    df = nonzero.reset_index()
    df.columns = ["Category", "Amount"]
    df["Category"] = df["Category"].map(lambda key: CATEGORY_LABELS.get(key, key))
    fig = px.pie(df, names="Category", values="Amount")
    fig.update_layout(title=title or "Spending by category")
    return fig


def create_budget_usage_chart(overview: Dict[str, Any], title: str | None = None) -> go.Figure:
    """Horizontal bar comparing spent amount with the budget.

    The bar turns red once the threshold is reached and the remaining
    budget is drawn as a grey segment when positive.
    """
    spent = overview['total_expenses']
    remaining = max(overview['remaining_budget'], 0.0)
    if not overview['budget'] and not spent:
        return _empty_figure("Set a budget to track usage")
    color = "#d62728" if overview['threshold_reached'] else "#2ca02c"
    fig = go.Figure()
    fig.add_trace(go.Bar(y=["Budget"], x=[spent], name="Spent", orientation="h", marker_color=color))
    fig.add_trace(go.Bar(y=["Budget"], x=[remaining], name="Remaining", orientation="h", marker_color="#c7c7c7"))
    fig.update_layout(
        title=title or "Budget usage",
        barmode="stack",
        xaxis_title="Amount",
        height=220,
        showlegend=True,
    )
    return fig
