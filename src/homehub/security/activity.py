"""Security activity log."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Iterator
from datetime import UTC, datetime

from homehub._constants import ACTIVITY_LOG_CAPACITY
from homehub.models.security import ActivityLogEntry, ActivityType
from homehub.state.logs import BoundedLog

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ActivityLog:
    """Newest-first log of security events, capped at ``capacity`` entries."""

    def __init__(
        self,
        capacity: int = ACTIVITY_LOG_CAPACITY,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._log: BoundedLog[ActivityLogEntry] = BoundedLog(capacity)
        self._ids = itertools.count(1)
        self._clock = clock

    @property
    def capacity(self) -> int:
        return self._log.capacity

    def record(self, kind: ActivityType, message: str) -> ActivityLogEntry:
        entry = ActivityLogEntry(id=next(self._ids), type=kind, timestamp=self._clock(), message=message)
        self._log.append(entry)
        _logger.info("Security activity [%s] %s", kind, message)
        return entry

    def entries(self, kind: ActivityType | None = None) -> list[ActivityLogEntry]:
        """Entries newest first, optionally only those of *kind*."""
        if kind is None:
            return self._log.entries()
        return [entry for entry in self._log if entry.type is kind]

    def __len__(self) -> int:
        return len(self._log)

    def __iter__(self) -> Iterator[ActivityLogEntry]:
        return iter(self._log)
