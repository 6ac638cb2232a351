"""Top‑level package for the Expense Tracker.

The primary modules are:

* ``ledger_store`` – the ledger state and every operation that changes it
* ``blob_store`` – key-value persistence backends for the ledger
* ``summary`` – pandas views and overview figures derived from a ledger
* ``visualization`` – Plotly figures for the overview panel
* ``app`` – a Streamlit app that ties everything together
* ``cli`` – command-line access to the same ledger

To run the app from the command line you can execute:

```bash
streamlit run expense_tracker/app.py
```
"""

from .blob_store import BlobStore, InMemoryBlobStore, JsonFileBlobStore  # noqa: F401
from .ledger_store import LedgerStore  # noqa: F401
from .models import Expense, ExpenseDraft, ValidationError  # noqa: F401

__all__ = [
    "BlobStore",
    "InMemoryBlobStore",
    "JsonFileBlobStore",
    "LedgerStore",
    "Expense",
    "ExpenseDraft",
    "ValidationError",
]
