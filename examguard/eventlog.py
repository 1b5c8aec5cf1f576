"""
Operator-facing session event log.

Every component reports through a session_logger(event, details) callable;
SessionLog.log is the usual implementation. Entries go to an append-only
session.log file when a path is given and are always kept in memory.
"""

import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple


class SessionLog:
    """Append-only event log for one exam attempt."""

    def __init__(self, log_path: Optional[Path] = None):
        self.log_path = Path(log_path) if log_path else None
        self.entries: List[Tuple[str, str]] = []
        self._lock = threading.Lock()

    def log(self, event: str, details: str = ""):
        """Append an entry to the session log."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        log_entry = f"[{timestamp}] - {event}"
        if details:
            log_entry += f" - {details}"
        log_entry += "\n"

        with self._lock:
            self.entries.append((event, details))
            if self.log_path is not None:
                with open(self.log_path, 'a', encoding='utf-8') as f:
                    f.write(log_entry)

    def events(self) -> List[str]:
        """Event names in the order they were logged."""
        with self._lock:
            return [event for event, _ in self.entries]
