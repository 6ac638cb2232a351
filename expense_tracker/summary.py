"""Tabular views and overview figures derived from a ledger.

These helpers turn the expense records held by :class:`LedgerStore` into
pandas objects for display and charting.  They never modify the store.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

import pandas as pd

from .config import CATEGORIES, CATEGORY_LABELS, THRESHOLD_RATIO
from .models import Expense

EXPENSE_COLUMNS = ['Category', 'Amount', 'Date']


def expenses_dataframe(
    entries: Iterable[Tuple[int, Expense]] | Sequence[Expense],
) -> pd.DataFrame:
    """Build a display DataFrame from expenses or ``(index, expense)`` pairs.

    The index of the result is the position of each expense in the stored
    order, so rows can be mapped back to ``begin_edit``/``delete_expense``.
    """
    rows = []
    positions = []
    for position, item in enumerate(entries):
        if isinstance(item, tuple):
            position, item = item
        positions.append(position)
        rows.append({
            'Category': CATEGORY_LABELS.get(item.category, item.category),
            'Amount': item.amount,
            'Date': item.date,
        })
    if not rows:
        return pd.DataFrame(columns=EXPENSE_COLUMNS)
    return pd.DataFrame(rows, index=pd.Index(positions, name='Index'), columns=EXPENSE_COLUMNS)


def category_totals(expenses: Sequence[Expense]) -> pd.Series:
    """Sum expense amounts per category, covering every known category."""
    totals = pd.Series(0.0, index=list(CATEGORIES), name='Amount')
    if expenses:
        df = pd.DataFrame([expense.to_dict() for expense in expenses])
        grouped = df.groupby('category')['amount'].sum()
        totals = totals.add(grouped, fill_value=0.0).reindex(list(CATEGORIES), fill_value=0.0)
    totals.index.name = 'Category'
    totals.name = 'Amount'
    return totals.round(2)


def ledger_overview(
    budget: float,
    expenses: Sequence[Expense],
    threshold_ratio: float = THRESHOLD_RATIO,
) -> Dict[str, Any]:
    """Summarize budget usage for the overview panel.

    Returns:
        Dict with keys: 'budget', 'total_expenses', 'remaining_budget',
        'percent_used' (None when the budget is zero), 'threshold_reached',
        'over_budget', 'expense_count'
    """
    total = float(sum(expense.amount for expense in expenses))
    remaining = budget - total
    percent_used: Optional[float] = (total / budget * 100.0) if budget else None
    return {
        'budget': budget,
        'total_expenses': total,
        'remaining_budget': remaining,
        'percent_used': percent_used,
        'threshold_reached': bool(expenses) and total >= budget * threshold_ratio,
        'over_budget': remaining < 0,
        'expense_count': len(expenses),
    }
