"""
Persistent session store.

Small key/value store scoped to one device's exam attempt. It holds the
identifiers that must survive a reload (active student id, exam code,
display name, question order, exam start anchor) and is cleared when the
student leaves the exam.
"""

import json
import threading
from pathlib import Path
from typing import Any, Dict, Optional

ACTIVE_STUDENT_ID = "activeStudentId"
ACTIVE_EXAM_CODE = "activeExamCode"
ACTIVE_STUDENT_NAME = "activeStudentName"


def order_key(exam_code: str, student_name: str) -> str:
    """Storage key for the frozen question order of one attempt."""
    return f"order-{exam_code}-{student_name}"


def start_key(student_id: str) -> str:
    """Storage key for the exam start anchor of one attempt."""
    return f"examStart-{student_id}"


class SessionStore:
    """
    Key/value store backed by a JSON file, or by memory when no path is given.

    Every write is flushed to disk so a crash or restart resumes from the
    last persisted value.
    """

    def __init__(self, state_path: Optional[Path] = None):
        self.state_path = Path(state_path) if state_path else None
        self._data: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._load()

    def _load(self):
        if self.state_path is None or not self.state_path.exists():
            return

        try:
            with open(self.state_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError):
            # Unreadable state is treated as no state: the attempt restarts from the entry flow
            return

        if isinstance(data, dict):
            self._data = data

    def _save(self):
        if self.state_path is None:
            return

        self.state_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.state_path, 'w', encoding='utf-8') as f:
            json.dump(self._data, f, indent=2)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any):
        with self._lock:
            self._data[key] = value
            self._save()

    def remove(self, key: str):
        with self._lock:
            if self._data.pop(key, None) is not None:
                self._save()

    def clear(self):
        """Drop every entry (explicit "leave exam")."""
        with self._lock:
            self._data = {}
            self._save()

    def keys(self):
        with self._lock:
            return list(self._data.keys())
