"""Expense records, the editable draft and their validation rules."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from .config import CATEGORIES

DRAFT_FIELDS = ("category", "amount", "date")


class ValidationError(ValueError):
    """Raised when an expense draft or budget value is rejected.

    Attributes:
        fields: Names of the offending fields, in declaration order.
    """

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        super().__init__(message)
        self.fields = list(fields or [])


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def coerce_amount(value: Any) -> float:
    """Convert form input to a float; blank or garbage input becomes 0.0."""
    if value is None:
        return 0.0
    if isinstance(value, str) and not value.strip():
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def parse_iso_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def is_valid_category(value: Any) -> bool:
    return isinstance(value, str) and value in CATEGORIES


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Expense:
    category: str
    amount: float
    date: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Expense":
        """Build a validated expense from a persisted mapping.

        Raises:
            ValidationError: If the mapping does not describe a valid expense.
        """
        if not isinstance(data, dict):
            raise ValidationError("Expense record must be an object")
        draft = ExpenseDraft(
            category=data.get("category") or "",
            amount=coerce_amount(data.get("amount")),
            date=data.get("date") or "",
        )
        return draft.to_expense()

    @property
    def calendar_date(self) -> date:
        parsed = parse_iso_date(self.date)
        return parsed if parsed is not None else date.max


@dataclass
class ExpenseDraft:
    """Uncommitted form fields for an expense being added or edited."""

    category: str = ""
    amount: float = 0.0
    date: str = ""

    def set_field(self, field: str, value: Any) -> None:
        if field not in DRAFT_FIELDS:
            raise KeyError(f"Unknown expense field '{field}'")
        if field == "amount":
            value = coerce_amount(value)
        elif isinstance(value, date):
            value = value.isoformat()
        elif value is None:
            value = ""
        setattr(self, field, value)

    def errors(self) -> List[str]:
        """Return the names of fields that would fail validation."""
        problems: List[str] = []
        if not is_valid_category(self.category):
            problems.append("category")
        if not isinstance(self.amount, (int, float)) or not math.isfinite(self.amount) or self.amount <= 0:
            problems.append("amount")
        if parse_iso_date(self.date) is None:
            problems.append("date")
        return problems

    def to_expense(self) -> Expense:
        problems = self.errors()
        if problems:
            raise ValidationError("Please fill in all fields correctly.", problems)
        return Expense(
            category=self.category,
            amount=float(self.amount),
            date=parse_iso_date(self.date).isoformat(),
        )

    @classmethod
    def from_expense(cls, expense: Expense) -> "ExpenseDraft":
        return cls(category=expense.category, amount=expense.amount, date=expense.date)
