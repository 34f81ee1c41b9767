"""In-memory repository for validation test history.

The history is an append-only log owned by the process: a single instance
is created at startup and handed to the services and HTTP handlers that need
it. Entries are never updated once appended.
"""

import logging
from collections import deque

from pos_payload_validator.models.history_models import HistoryEntry, HistorySummary

logger = logging.getLogger(__name__)


class ValidationHistoryRepository:
    """Append-only log of validation outcomes.

    When ``max_entries`` is set, the oldest entries are dropped once the log
    is full.
    """

    def __init__(self, max_entries: int | None = None) -> None:
        """Initialize repository.

        Args:
            max_entries: Optional cap on the number of retained entries

        Raises:
            ValueError: If max_entries is not positive
        """
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be positive")

        self.max_entries = max_entries
        self._entries: deque[HistoryEntry] = deque(maxlen=max_entries)

    def append(self, entry: HistoryEntry) -> None:
        """Append an entry to the log.

        Args:
            entry: HistoryEntry to record
        """
        self._entries.append(entry)
        logger.debug(
            f"Recorded {entry.request_type.value} validation "
            f"({'passed' if entry.passed else 'failed'})"
        )

    def list_entries(self, limit: int | None = None) -> list[HistoryEntry]:
        """List entries, newest first.

        Args:
            limit: Optional maximum number of entries to return

        Returns:
            list: HistoryEntry objects (empty list if none recorded)
        """
        entries = list(reversed(self._entries))
        if limit is not None:
            entries = entries[: max(limit, 0)]
        return entries

    def summary(self) -> HistorySummary:
        """Count total, passed and failed entries."""
        passed = sum(1 for entry in self._entries if entry.passed)
        return HistorySummary(
            total=len(self._entries), passed=passed, failed=len(self._entries) - passed
        )

    def clear(self) -> None:
        """Remove every entry from the log."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
