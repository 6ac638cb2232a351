"""Key-value blob stores backing the ledger.

The ledger only needs string values under string keys, the same contract
as a browser's local storage.  ``JsonFileBlobStore`` keeps every key in a
single JSON object on disk and rewrites the whole file on each write,
swapping a fully written temporary file over the previous snapshot.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from .config import STORE_PATH

logger = logging.getLogger(__name__)


class BlobStore:
    """Interface for string-keyed, string-valued persistent storage."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError


class InMemoryBlobStore(BlobStore):
    """Dictionary-backed store, used for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})
        self.writes = 0

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = str(value)
        self.writes += 1

    def __contains__(self, key: object) -> bool:
        return key in self._data


class JsonFileBlobStore(BlobStore):
    """Blob store persisted as one JSON object in a local file."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else STORE_PATH

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open('r', encoding='utf-8') as handle:
                data = json.load(handle)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as exc:
            logger.warning("Ignoring unreadable ledger store %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring ledger store %s: expected a JSON object", self.path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = str(value)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # The previous snapshot stays intact until the new one is fully written
        tmp_path = self.path.with_name(self.path.name + '.tmp')
        try:
            with tmp_path.open('w', encoding='utf-8') as handle:
                json.dump(data, handle, indent=2, sort_keys=True)
            tmp_path.replace(self.path)
        except OSError as e:
            raise OSError(f"Failed to save ledger store to {self.path}: {e}") from e
        finally:
            if tmp_path.exists():
                tmp_path.unlink()
        logger.debug("Wrote key '%s' to %s", key, self.path)
