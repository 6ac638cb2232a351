"""Streamlit app for the Expense Tracker.

The page is a thin consumer of :class:`LedgerStore`: widgets read the
store's properties and views, and every change goes through a store
operation.  One store lives in ``st.session_state`` per browser session.

To run the app from the command line::

    streamlit run expense_tracker/app.py

or use ``run_expense_tracker.py`` at the project root.
"""

from __future__ import annotations

import os
import sys
from typing import Any, Dict, Optional

import streamlit as st

# Support both ``python -m`` style package imports and
# ``streamlit run expense_tracker/app.py``, which executes this file as a
# standalone script.
if __package__:
    from .blob_store import BlobStore, JsonFileBlobStore
    from .config import CATEGORIES, CATEGORY_LABELS, SORT_KEYS, SORT_LABELS, configure_logging
    from .formatting import escape_dollar_for_markdown, format_currency
    from .ledger_store import CLEAR_PROMPT, DELETE_PROMPT, LedgerStore
    from .models import Expense, ValidationError, parse_iso_date
    from . import summary
    from . import visualization as viz
else:
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from expense_tracker.blob_store import BlobStore, JsonFileBlobStore  # type: ignore
    from expense_tracker.config import (  # type: ignore
        CATEGORIES, CATEGORY_LABELS, SORT_KEYS, SORT_LABELS, configure_logging,
    )
    from expense_tracker.formatting import escape_dollar_for_markdown, format_currency  # type: ignore
    from expense_tracker.ledger_store import CLEAR_PROMPT, DELETE_PROMPT, LedgerStore  # type: ignore
    from expense_tracker.models import Expense, ValidationError, parse_iso_date  # type: ignore
    from expense_tracker import summary  # type: ignore
    from expense_tracker import visualization as viz  # type: ignore

STORE_STATE_KEY = 'ledger_store'
MESSAGES_STATE_KEY = 'ledger_messages'
PENDING_STATE_KEY = 'pending_confirmation'
ANSWER_STATE_KEY = 'confirmation_answer'
FORM_VERSION_KEY = 'expense_form_version'


# ---------------------------------------------------------------------------
# Session plumbing
# ---------------------------------------------------------------------------


def _queue_message(message: str) -> None:
    """Notification channel: keep messages until the next render."""
    messages = st.session_state.get(MESSAGES_STATE_KEY) or []
    messages.append(message)
    st.session_state[MESSAGES_STATE_KEY] = messages


def _confirm_from_session(message: str) -> bool:
    """Confirmation gate: consume the answer given in the confirm panel."""
    return bool(st.session_state.pop(ANSWER_STATE_KEY, False))


def get_store(blob_store: Optional[BlobStore] = None) -> LedgerStore:
    """Return the session's store, hydrating it on first use."""
    store = st.session_state.get(STORE_STATE_KEY)
    if store is None:
        store = LedgerStore.from_store(
            blob_store if blob_store is not None else JsonFileBlobStore(),
            confirm=_confirm_from_session,
            notify=_queue_message,
        )
        st.session_state[STORE_STATE_KEY] = store
    return store


def _request_confirmation(
    action: str, index: Optional[int] = None, expense: Optional[Expense] = None
) -> None:
    st.session_state[PENDING_STATE_KEY] = {'action': action, 'index': index, 'expense': expense}


def _pending_delete_index(store: LedgerStore, pending: Dict[str, Any]) -> Optional[int]:
    """Locate the record the user asked to delete in the current ordering."""
    index = pending.get('index')
    target = pending.get('expense')
    expenses = store.expenses
    if target is None:
        return index if index is not None and 0 <= index < len(expenses) else None
    if index is not None and 0 <= index < len(expenses) and expenses[index] == target:
        return index
    # The ledger was reordered or edited after the prompt was shown
    if target in expenses:
        return expenses.index(target)
    return None


def _resolve_confirmation(store: LedgerStore, answer: bool) -> bool:
    """Run the pending delete/clear with the user's answer.

    Returns:
        True if the ledger changed.
    """
    pending = st.session_state.pop(PENDING_STATE_KEY, None)
    if not pending:
        return False
    st.session_state[ANSWER_STATE_KEY] = answer
    try:
        if pending['action'] == 'delete':
            index = _pending_delete_index(store, pending)
            if index is None:
                return False
            return store.delete_expense(index)
        if pending['action'] == 'clear':
            return store.clear_all()
        return False
    finally:
        st.session_state.pop(ANSWER_STATE_KEY, None)


def _bump_form_version() -> None:
    st.session_state[FORM_VERSION_KEY] = st.session_state.get(FORM_VERSION_KEY, 0) + 1


def _rerun() -> None:
    rerun_fn = getattr(st, 'rerun', None) or getattr(st, 'experimental_rerun', None)
    if rerun_fn:
        rerun_fn()


def _flush_messages() -> None:
    messages = st.session_state.pop(MESSAGES_STATE_KEY, None) or []
    toast = getattr(st, 'toast', None)
    for message in messages:
        if toast:
            toast(message, icon="⚠️")
        else:
            st.warning(message)


def _category_label(key: str) -> str:
    return CATEGORY_LABELS.get(key, "Select category")


# ---------------------------------------------------------------------------
# Widget callbacks
# ---------------------------------------------------------------------------


def _on_budget_change(store: LedgerStore) -> None:
    try:
        store.set_budget(st.session_state['budget_input'])
    except ValidationError:
        pass  # message already queued by the store


def _on_sort_change(store: LedgerStore) -> None:
    store.sort(st.session_state['sort_key'])


def _on_filter_change(store: LedgerStore) -> None:
    store.set_filter(st.session_state['filter_key'] or None)


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


def _render_budget_section(store: LedgerStore) -> None:
    st.subheader("Set Monthly Budget")
    st.number_input(
        "Monthly budget",
        value=float(store.budget),
        step=50.0,
        key='budget_input',
        on_change=_on_budget_change,
        args=(store,),
    )


def _render_expense_form(store: LedgerStore) -> None:
    editing = store.is_editing
    st.subheader("Edit Expense" if editing else "Add Expense")
    draft = store.draft
    version = st.session_state.get(FORM_VERSION_KEY, 0)
    options = [""] + list(CATEGORIES)

    with st.form(key=f"expense_form_{version}"):
        col1, col2, col3 = st.columns(3)
        with col1:
            category = st.selectbox(
                "Category",
                options,
                index=options.index(draft.category) if draft.category in options else 0,
                format_func=_category_label,
            )
        with col2:
            amount = st.number_input("Amount", min_value=0.0, value=float(draft.amount), step=1.0)
        with col3:
            expense_date = st.date_input("Date", value=parse_iso_date(draft.date))
        submitted = st.form_submit_button("Update Expense" if editing else "Add Expense")

    if submitted:
        store.stage_expense_field('category', category)
        store.stage_expense_field('amount', amount)
        store.stage_expense_field('date', expense_date)
        try:
            store.commit_expense()
        except ValidationError:
            return  # message already queued by the store
        _bump_form_version()
        _rerun()


def _render_overview(store: LedgerStore) -> None:
    st.subheader("Expenses Overview")
    overview = summary.ledger_overview(store.budget, store.expenses, store.threshold_ratio)
    col1, col2, col3 = st.columns(3)
    col1.metric("Budget", format_currency(overview['budget']))
    col2.metric("Total Expenses", format_currency(overview['total_expenses']))
    col3.metric("Remaining Budget", format_currency(store.remaining_budget))
    if store.over_budget:
        st.error("Warning: Budget exceeded!")

    chart_col1, chart_col2 = st.columns(2)
    with chart_col1:
        st.plotly_chart(viz.create_budget_usage_chart(overview), use_container_width=True)
    with chart_col2:
        totals = summary.category_totals(store.expenses)
        st.plotly_chart(viz.create_category_pie_chart(totals), use_container_width=True)


def _render_confirmation_panel(store: LedgerStore) -> None:
    pending = st.session_state.get(PENDING_STATE_KEY)
    if not pending:
        return
    st.warning(DELETE_PROMPT if pending['action'] == 'delete' else CLEAR_PROMPT)
    col1, col2 = st.columns(2)
    with col1:
        if st.button("✅ Confirm", key="confirm_pending_btn"):
            _resolve_confirmation(store, True)
            _bump_form_version()
            _rerun()
    with col2:
        if st.button("❌ Cancel", key="cancel_pending_btn"):
            _resolve_confirmation(store, False)
            _rerun()


def _render_expense_list(store: LedgerStore) -> None:
    st.subheader("Expense List")
    col1, col2 = st.columns(2)
    with col1:
        st.selectbox(
            "Sort by",
            list(SORT_KEYS),
            index=list(SORT_KEYS).index(store.sort_key),
            format_func=lambda key: SORT_LABELS[key],
            key='sort_key',
            on_change=_on_sort_change,
            args=(store,),
        )
    with col2:
        filter_options = [""] + list(CATEGORIES)
        st.selectbox(
            "Filter by Category",
            filter_options,
            index=filter_options.index(store.filter_key or ""),
            format_func=lambda key: CATEGORY_LABELS.get(key, "All"),
            key='filter_key',
            on_change=_on_filter_change,
            args=(store,),
        )

    entries = list(store.visible_entries())
    if not entries:
        st.info("No expenses recorded yet.")
        return

    for index, expense in entries:
        row = st.columns([2, 2, 2, 1, 1])
        row[0].markdown(f"**Category:** {CATEGORY_LABELS[expense.category]}")
        row[1].markdown(f"**Amount:** {escape_dollar_for_markdown(expense.amount)}")
        row[2].markdown(f"**Date:** {expense.date}")
        if row[3].button("Edit", key=f"edit_{index}"):
            store.begin_edit(index)
            _bump_form_version()
            _rerun()
        if row[4].button("Delete", key=f"delete_{index}"):
            _request_confirmation('delete', index, expense)
            _rerun()

    with st.expander("Table view"):
        st.dataframe(summary.expenses_dataframe(entries), use_container_width=True)


def main() -> None:
    """Render the Expense Tracker page."""
    st.set_page_config(page_title="Expense Tracker", page_icon="💸", layout="wide")
    configure_logging()
    store = get_store()

    st.title("💸 Expense Tracker")
    _render_budget_section(store)
    _render_expense_form(store)
    _render_overview(store)
    _render_confirmation_panel(store)
    _render_expense_list(store)

    if store.expenses and st.button("🗑️ Clear All Expenses", key="clear_all_btn"):
        _request_confirmation('clear')
        _rerun()

    _flush_messages()


if __name__ == "__main__":
    main()
