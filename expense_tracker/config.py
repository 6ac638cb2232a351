"""Configuration management for the expense tracker.

This module centralizes all configuration values including paths,
category definitions, the budget alert threshold and environment
variable overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

# Base project root - assumes this file is in expense_tracker/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("EXPENSE_TRACKER_DATA_DIR", _PROJECT_ROOT / "data"))

# Ledger blob store (budget + expenses)
STORE_PATH = Path(
    os.getenv("EXPENSE_TRACKER_STORE_PATH", DATA_DIR / "ledger_store.json")
).resolve()

LOG_LEVEL = os.getenv("EXPENSE_TRACKER_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Share of the budget at which the threshold notification fires
THRESHOLD_RATIO = 0.8

CATEGORIES = ("utilities", "groceries", "entertainment")
CATEGORY_LABELS = {
    "utilities": "Utilities",
    "groceries": "Groceries",
    "entertainment": "Entertainment",
}

SORT_KEYS = ("date", "amount", "category")
DEFAULT_SORT_KEY = "date"
SORT_LABELS = {
    "date": "Date",
    "amount": "Amount",
    "category": "Category",
}

# Blob store keys
BUDGET_KEY = "budget"
EXPENSES_KEY = "expenses"


def get_store_path() -> str:
    """Get the ledger store path as a string."""
    return str(STORE_PATH)


def configure_logging(level: str | None = None) -> None:
    """Attach a stream handler to the package logger once.

    Calling this repeatedly (Streamlit reruns the script on every
    interaction) keeps a single handler.  When the root logger is already
    configured by the host process, records propagate there instead.
    """
    logger = logging.getLogger("expense_tracker")
    if not logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(level or LOG_LEVEL)
