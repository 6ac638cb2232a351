"""Expense ledger state and the operations that change it.

``LedgerStore`` owns the budget, the expense list and the view state
(sort key, category filter, edit cursor and the form draft).  Every
mutation runs to completion in three steps: change the state, recompute
the remaining budget, rewrite the affected snapshot key in the blob store.

The presentation layer reads the properties and ``visible_expenses`` and
calls the operations below; it keeps no ledger state of its own.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Callable, Iterator, List, Optional, Tuple, Union

from .blob_store import BlobStore, InMemoryBlobStore
from .config import (
    BUDGET_KEY,
    CATEGORIES,
    DEFAULT_SORT_KEY,
    EXPENSES_KEY,
    SORT_KEYS,
    THRESHOLD_RATIO,
)
from .models import Expense, ExpenseDraft, ValidationError

logger = logging.getLogger(__name__)

ConfirmGate = Callable[[str], bool]
Notifier = Callable[[str], None]

DELETE_PROMPT = "Are you sure you want to delete this expense?"
CLEAR_PROMPT = "Are you sure you want to clear all expenses?"
THRESHOLD_MESSAGE = "80% of the budget has been utilized"
INVALID_BUDGET_MESSAGE = "Budget must be a finite number."
SKIPPED_RECORDS_MESSAGE = "{count} saved expense(s) could not be loaded and were skipped."


def _always_confirm(message: str) -> bool:
    return True


def _log_notification(message: str) -> None:
    logger.info("Notification: %s", message)


def format_budget(value: float) -> str:
    """Encode a budget for the blob store (``1000.0`` -> ``"1000"``)."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def parse_budget(raw: Optional[str]) -> float:
    if raw is None:
        return 0.0
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring unparseable stored budget %r", raw)
        return 0.0
    if not math.isfinite(value):
        logger.warning("Ignoring non-finite stored budget %r", raw)
        return 0.0
    return value


def parse_expenses(raw: Optional[str]) -> Tuple[List[Expense], int]:
    """Decode the stored expense array, dropping records that fail validation.

    Returns the valid expenses and the number of records that were skipped.
    """
    if raw is None:
        return [], 0
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring unparseable stored expenses")
        return [], 0
    if not isinstance(data, list):
        logger.warning("Ignoring stored expenses: expected a JSON array")
        return [], 0
    expenses: List[Expense] = []
    for position, record in enumerate(data):
        try:
            expenses.append(Expense.from_dict(record))
        except ValidationError as exc:
            logger.warning("Skipping stored expense #%d (%s): %s", position, ", ".join(exc.fields), record)
    return expenses, len(data) - len(expenses)


def _sort_key_func(key: str) -> Callable[[Expense], Any]:
    if key == "amount":
        return lambda expense: expense.amount
    if key == "category":
        return lambda expense: expense.category
    return lambda expense: expense.calendar_date


class LedgerStore:
    """Single owner of the ledger state for one user session."""

    def __init__(
        self,
        blob_store: Optional[BlobStore] = None,
        *,
        confirm: Optional[ConfirmGate] = None,
        notify: Optional[Notifier] = None,
        threshold_ratio: float = THRESHOLD_RATIO,
    ) -> None:
        self.blob_store = blob_store if blob_store is not None else InMemoryBlobStore()
        self.confirm = confirm or _always_confirm
        self.notify = notify or _log_notification
        self.threshold_ratio = threshold_ratio

        self._budget = 0.0
        self._expenses: List[Expense] = []
        self._remaining_budget = 0.0
        self._edit_cursor: Optional[int] = None
        self._sort_key = DEFAULT_SORT_KEY
        self._filter_key: Optional[str] = None
        self._draft = ExpenseDraft()

    @classmethod
    def from_store(cls, blob_store: BlobStore, **kwargs: Any) -> "LedgerStore":
        """Create a store and hydrate it from ``blob_store``."""
        store = cls(blob_store, **kwargs)
        store.hydrate()
        return store

    # Read-only state ---------------------------------------------------------

    @property
    def budget(self) -> float:
        return self._budget

    @property
    def expenses(self) -> Tuple[Expense, ...]:
        return tuple(self._expenses)

    @property
    def remaining_budget(self) -> float:
        return self._remaining_budget

    @property
    def total_expenses(self) -> float:
        return sum(expense.amount for expense in self._expenses)

    @property
    def over_budget(self) -> bool:
        return self._remaining_budget < 0

    @property
    def edit_cursor(self) -> Optional[int]:
        return self._edit_cursor

    @property
    def is_editing(self) -> bool:
        return self._edit_cursor is not None

    @property
    def sort_key(self) -> str:
        return self._sort_key

    @property
    def filter_key(self) -> Optional[str]:
        return self._filter_key

    @property
    def draft(self) -> ExpenseDraft:
        return ExpenseDraft(self._draft.category, self._draft.amount, self._draft.date)

    def __len__(self) -> int:
        return len(self._expenses)

    # Persistence -------------------------------------------------------------

    def hydrate(self) -> None:
        """Load budget and expenses from the blob store.

        Missing or unparseable values fall back to a zero budget and an
        empty expense list.  Stored records that fail validation are skipped
        and the user is told how many.  Nothing is written back.
        """
        self._budget = parse_budget(self.blob_store.get(BUDGET_KEY))
        self._expenses, skipped = parse_expenses(self.blob_store.get(EXPENSES_KEY))
        self._edit_cursor = None
        self._draft = ExpenseDraft()
        self._recalculate()
        logger.info(
            "Hydrated ledger: budget=%s, %d expense(s), remaining=%s",
            self._budget, len(self._expenses), self._remaining_budget,
        )
        if skipped:
            self.notify(SKIPPED_RECORDS_MESSAGE.format(count=skipped))

    def _persist_budget(self) -> None:
        self.blob_store.set(BUDGET_KEY, format_budget(self._budget))

    def _persist_expenses(self) -> None:
        payload = [expense.to_dict() for expense in self._expenses]
        self.blob_store.set(EXPENSES_KEY, json.dumps(payload))

    def _recalculate(self) -> None:
        self._remaining_budget = self._budget - self.total_expenses

    def _check_index(self, index: int) -> int:
        if isinstance(index, bool) or not isinstance(index, int):
            raise IndexError(f"Expense index must be an integer, got {index!r}")
        if not 0 <= index < len(self._expenses):
            raise IndexError(f"No expense at index {index}")
        return index

    def _reset_form(self) -> None:
        self._draft = ExpenseDraft()
        self._edit_cursor = None

    # Mutations ---------------------------------------------------------------

    def set_budget(self, value: Any) -> float:
        """Set the monthly budget.  Negative values are accepted.

        Raises:
            ValidationError: If ``value`` is not a finite number.
        """
        try:
            number = float(value)
        except (TypeError, ValueError):
            number = math.nan
        if isinstance(value, bool) or not math.isfinite(number):
            logger.info("Rejected budget value %r", value)
            self.notify(INVALID_BUDGET_MESSAGE)
            raise ValidationError(INVALID_BUDGET_MESSAGE, ["budget"])
        self._budget = number
        self._recalculate()
        self._persist_budget()
        return self._budget

    def stage_expense_field(self, field: str, value: Any) -> None:
        """Update one field of the uncommitted draft."""
        self._draft.set_field(field, value)

    def commit_expense(
        self, draft: Optional[Union[ExpenseDraft, Expense]] = None
    ) -> Expense:
        """Validate the draft and add it, or replace the expense being edited.

        ``draft`` may be an ``ExpenseDraft`` or a ready-made ``Expense``; both
        go through the same validation.  Without it the staged draft is used.

        Raises:
            ValidationError: If a field is missing or invalid.  The ledger,
                the edit cursor and the draft are left untouched.
        """
        candidate = draft if draft is not None else self._draft
        if isinstance(candidate, Expense):
            candidate = ExpenseDraft.from_expense(candidate)
        try:
            expense = candidate.to_expense()
        except ValidationError as exc:
            logger.info("Rejected expense draft, invalid field(s): %s", ", ".join(exc.fields))
            self.notify(str(exc))
            raise

        if self._edit_cursor is not None:
            self._expenses[self._edit_cursor] = expense
            logger.info("Updated expense #%d: %s", self._edit_cursor, expense)
        else:
            self._expenses.append(expense)
            logger.info("Added expense: %s", expense)
        self._reset_form()
        self._recalculate()
        self._persist_expenses()

        total = self.total_expenses
        if total >= self._budget * self.threshold_ratio:
            logger.info("Expenses %.2f reached threshold of budget %.2f", total, self._budget)
            self.notify(THRESHOLD_MESSAGE)
        return expense

    def delete_expense(self, index: int) -> bool:
        """Remove the expense at ``index`` once the user confirms.

        Returns:
            True if the expense was deleted, False if the user declined.
        """
        self._check_index(index)
        if not self.confirm(DELETE_PROMPT):
            logger.info("Deletion of expense #%d declined", index)
            return False
        removed = self._expenses.pop(index)
        logger.info("Deleted expense #%d: %s", index, removed)
        self._reset_form()
        self._recalculate()
        self._persist_expenses()
        return True

    def clear_all(self) -> bool:
        """Remove every expense once the user confirms."""
        if not self.confirm(CLEAR_PROMPT):
            logger.info("Clearing all expenses declined")
            return False
        self._expenses = []
        self._remaining_budget = self._budget
        self._reset_form()
        self._recalculate()
        self._persist_expenses()
        logger.info("Cleared all expenses")
        return True

    def sort(self, key: str) -> None:
        """Reorder the expenses in place; the result becomes the stored order.

        Ties keep their previous relative order.  An expense being edited
        keeps its edit cursor.
        """
        if key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key '{key}'. Expected one of {', '.join(SORT_KEYS)}")
        record_key = _sort_key_func(key)
        order = sorted(range(len(self._expenses)), key=lambda i: record_key(self._expenses[i]))
        if self._edit_cursor is not None:
            self._edit_cursor = order.index(self._edit_cursor)
        self._expenses = [self._expenses[i] for i in order]
        self._sort_key = key
        self._recalculate()
        self._persist_expenses()

    def begin_edit(self, index: int) -> ExpenseDraft:
        """Load the expense at ``index`` into the draft for editing."""
        self._check_index(index)
        self._draft = ExpenseDraft.from_expense(self._expenses[index])
        self._edit_cursor = index
        return self.draft

    # Views -------------------------------------------------------------------

    def set_filter(self, key: Optional[str]) -> None:
        if not key:
            self._filter_key = None
            return
        if key not in CATEGORIES:
            raise ValueError(f"Unknown category '{key}'")
        self._filter_key = key

    def visible_entries(self) -> Iterator[Tuple[int, Expense]]:
        """Yield ``(index, expense)`` for expenses passing the filter.

        ``index`` is the position in the stored order, suitable for
        ``begin_edit`` and ``delete_expense``.
        """
        for index, expense in enumerate(self._expenses):
            if self._filter_key is None or expense.category == self._filter_key:
                yield index, expense

    def visible_expenses(self) -> List[Expense]:
        return [expense for _, expense in self.visible_entries()]
