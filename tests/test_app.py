import types

import pytest

from expense_tracker import app
from expense_tracker.blob_store import InMemoryBlobStore
from expense_tracker.ledger_store import THRESHOLD_MESSAGE
from expense_tracker.models import Expense, ExpenseDraft


@pytest.fixture
def session(monkeypatch):
    state = {}
    toasts = []
    st_mock = types.SimpleNamespace(
        session_state=state,
        toast=lambda message, icon=None: toasts.append(message),
    )
    monkeypatch.setattr(app, 'st', st_mock)
    st_mock.toasts = toasts
    return st_mock


def _seeded_store(session):
    store = app.get_store(InMemoryBlobStore())
    store.set_budget(100)
    store.commit_expense(ExpenseDraft('groceries', 10, '2024-01-01'))
    store.commit_expense(ExpenseDraft('utilities', 20, '2024-01-02'))
    return store


def test_get_store_is_created_once_per_session(session):
    blob = InMemoryBlobStore({'budget': '250'})
    store = app.get_store(blob)
    assert store.budget == 250
    assert app.get_store() is store
    assert session.session_state[app.STORE_STATE_KEY] is store


def test_confirmed_delete_runs(session):
    store = _seeded_store(session)
    app._request_confirmation('delete', 0)
    assert app._resolve_confirmation(store, True) is True
    assert [e.category for e in store.expenses] == ['utilities']
    assert app.PENDING_STATE_KEY not in session.session_state
    assert app.ANSWER_STATE_KEY not in session.session_state


def test_cancelled_delete_keeps_expense(session):
    store = _seeded_store(session)
    app._request_confirmation('delete', 1)
    assert app._resolve_confirmation(store, False) is False
    assert len(store.expenses) == 2


def test_stale_delete_index_is_ignored(session):
    store = _seeded_store(session)
    app._request_confirmation('delete', 5)
    assert app._resolve_confirmation(store, True) is False
    assert len(store.expenses) == 2


def test_pending_delete_follows_record_through_sort(session):
    store = app.get_store(InMemoryBlobStore())
    store.set_budget(100)
    store.commit_expense(ExpenseDraft('utilities', 30, '2024-01-01'))
    store.commit_expense(ExpenseDraft('groceries', 10, '2024-01-02'))
    app._request_confirmation('delete', 0, store.expenses[0])

    store.sort('amount')

    assert app._resolve_confirmation(store, True) is True
    assert store.expenses == (Expense('groceries', 10.0, '2024-01-02'),)
    assert store.remaining_budget == 90


def test_pending_delete_of_removed_record_is_ignored(session):
    store = _seeded_store(session)
    app._request_confirmation('delete', 1, store.expenses[1])
    store.begin_edit(1)
    store.commit_expense(ExpenseDraft('utilities', 25, '2024-01-02'))

    assert app._resolve_confirmation(store, True) is False
    assert [e.amount for e in store.expenses] == [10, 25]


def test_confirmed_clear_all(session):
    store = _seeded_store(session)
    app._request_confirmation('clear')
    assert app._resolve_confirmation(store, True) is True
    assert store.expenses == ()
    assert store.remaining_budget == 100


def test_resolve_without_pending_does_nothing(session):
    store = _seeded_store(session)
    assert app._resolve_confirmation(store, True) is False


def test_gate_declines_without_answer(session):
    store = _seeded_store(session)
    assert store.delete_expense(0) is False
    assert len(store.expenses) == 2


def test_notifications_are_queued_and_flushed(session):
    store = app.get_store(InMemoryBlobStore())
    store.set_budget(100)
    store.commit_expense(ExpenseDraft('groceries', 90, '2024-01-01'))
    assert session.session_state[app.MESSAGES_STATE_KEY] == [THRESHOLD_MESSAGE]

    app._flush_messages()

    assert session.toasts == [THRESHOLD_MESSAGE]
    assert app.MESSAGES_STATE_KEY not in session.session_state


def test_callbacks_route_through_store(session):
    store = _seeded_store(session)
    session.session_state['sort_key'] = 'amount'
    session.session_state['filter_key'] = 'utilities'
    session.session_state['budget_input'] = 500.0

    app._on_sort_change(store)
    app._on_filter_change(store)
    app._on_budget_change(store)

    assert store.sort_key == 'amount'
    assert [e.category for e in store.visible_expenses()] == ['utilities']
    assert store.remaining_budget == 470


def test_rerun_prefers_streamlit_rerun(monkeypatch):
    called = {}
    st_mock = types.SimpleNamespace(rerun=lambda: called.setdefault('method', 'rerun'))
    monkeypatch.setattr(app, 'st', st_mock)
    app._rerun()
    assert called['method'] == 'rerun'


def test_rerun_falls_back_to_experimental(monkeypatch):
    called = {}
    st_mock = types.SimpleNamespace(experimental_rerun=lambda: called.setdefault('method', 'experimental'))
    monkeypatch.setattr(app, 'st', st_mock)
    app._rerun()
    assert called['method'] == 'experimental'
