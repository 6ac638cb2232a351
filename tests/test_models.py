from datetime import date

import pytest

from expense_tracker.models import (
    Expense,
    ExpenseDraft,
    ValidationError,
    coerce_amount,
    parse_iso_date,
)


def test_coerce_amount_handles_form_input():
    assert coerce_amount('12.5') == 12.5
    assert coerce_amount('') == 0.0
    assert coerce_amount(None) == 0.0
    assert coerce_amount('twelve') == 0.0
    assert coerce_amount(7) == 7.0


def test_parse_iso_date():
    assert parse_iso_date('2024-02-29') == date(2024, 2, 29)
    assert parse_iso_date('2023-02-29') is None
    assert parse_iso_date('') is None
    assert parse_iso_date(None) is None


def test_draft_reports_every_bad_field():
    assert ExpenseDraft().errors() == ['category', 'amount', 'date']
    assert ExpenseDraft('groceries', 3, '2024-01-01').errors() == []
    assert ExpenseDraft('groceries', float('nan'), '2024-01-01').errors() == ['amount']


def test_draft_accepts_date_objects():
    draft = ExpenseDraft()
    draft.set_field('date', date(2024, 5, 6))
    assert draft.date == '2024-05-06'


def test_to_expense_raises_with_fields():
    with pytest.raises(ValidationError) as excinfo:
        ExpenseDraft('groceries', 0, '').to_expense()
    assert excinfo.value.fields == ['amount', 'date']


def test_expense_dict_round_trip():
    expense = Expense('utilities', 55.25, '2024-01-31')
    assert Expense.from_dict(expense.to_dict()) == expense


def test_expense_is_immutable():
    expense = Expense('utilities', 55.25, '2024-01-31')
    with pytest.raises(AttributeError):
        expense.amount = 1.0
