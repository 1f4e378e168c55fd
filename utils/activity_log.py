"""
Activity Log - operator-facing feed of strategy and trade events

Every entry is kept in memory (for the dashboard summary) and forwarded
to the standard logging module.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List

logger = logging.getLogger(__name__)

SEVERITIES = ("info", "success", "warning", "error", "trade")

_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "trade": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_MARKERS = {
    "success": "✅ ",
    "trade": "💱 ",
    "warning": "⚠️ ",
    "error": "❌ ",
}


@dataclass
class LogEntry:
    timestamp: datetime
    message: str
    severity: str


class ActivityLog:
    """Append-only, fire-and-forget log sink"""

    def __init__(self, max_entries: int = 1000):
        self.max_entries = max_entries
        self.entries: List[LogEntry] = []

    def add(self, message: str, severity: str = "info") -> None:
        if severity not in SEVERITIES:
            severity = "info"

        self.entries.append(LogEntry(datetime.now(), message, severity))
        if len(self.entries) > self.max_entries:
            self.entries.pop(0)

        logger.log(_LEVELS[severity], f"{_MARKERS.get(severity, '')}{message}")

    def get_entries(self, severity: str = None) -> List[LogEntry]:
        if severity is None:
            return list(self.entries)
        return [e for e in self.entries if e.severity == severity]

    def messages(self) -> List[str]:
        return [e.message for e in self.entries]
