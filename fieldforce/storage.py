# fieldforce/storage.py
"""
Key-value stores for small pieces of UI state.

Components receive a store instead of reaching for module globals or
st.session_state directly:
- MemoryStore: plain dict, used in tests and as a fallback
- SessionStateStore: wraps st.session_state (one browser session)
- JsonFileStore: survives restarts, one JSON document on disk
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, MutableMapping, Optional

logger = logging.getLogger(__name__)


class MemoryStore:
    """Dict-backed store."""

    def __init__(self, data: Optional[MutableMapping] = None):
        self._data = data if data is not None else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value


class SessionStateStore(MemoryStore):
    """Store bound to the current Streamlit session."""

    def __init__(self, session_state: Optional[MutableMapping] = None):
        if session_state is None:
            import streamlit as st
            session_state = st.session_state
        super().__init__(session_state)


class JsonFileStore:
    """
    Store persisted as a single JSON object.

    The file is read on every get so that several sessions see each
    other's writes; writes replace the file atomically.
    """

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unreadable store {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f)
            tmp_path.replace(self.path)
