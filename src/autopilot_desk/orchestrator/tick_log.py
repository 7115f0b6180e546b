"""Bounded running log of the autopilot loop."""

import logging
import uuid
from collections import deque
from datetime import datetime
from typing import Callable

from autopilot_desk.orchestrator.models import TickLogEntry, TickLogType

logger = logging.getLogger(__name__)

TickLogListener = Callable[[TickLogEntry], None]


class TickLog:
    """Ring buffer of TickLogEntry with live listeners.

    Purely diagnostic: entries are never persisted. The journal is the audit
    trail.
    """

    def __init__(self, capacity: int = 200) -> None:
        self._entries: deque[TickLogEntry] = deque(maxlen=capacity)
        self._listeners: list[TickLogListener] = []

    @property
    def capacity(self) -> int:
        """Return the maximum number of entries kept."""
        return self._entries.maxlen

    @property
    def entries(self) -> list[TickLogEntry]:
        """Return entries, oldest first."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def append(
        self,
        agent_id: str,
        message: str,
        type: TickLogType = TickLogType.THOUGHT,
    ) -> TickLogEntry:
        """Add a line and notify listeners."""
        entry = TickLogEntry(
            id=uuid.uuid4().hex[:10],
            timestamp=datetime.now(),
            agent_id=agent_id,
            message=message,
            type=type,
        )
        self._entries.append(entry)

        for listener in list(self._listeners):
            try:
                listener(entry)
            except Exception as e:
                logger.error(f"Tick log listener failed: {e}")

        return entry

    def add_listener(self, listener: TickLogListener) -> None:
        """Register a callback invoked for each new entry."""
        self._listeners.append(listener)

    def remove_listener(self, listener: TickLogListener) -> None:
        """Unregister a callback; unknown callbacks are ignored."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def clear(self) -> None:
        """Drop all entries."""
        self._entries.clear()
