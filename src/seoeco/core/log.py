"""Append-only progress log for one analysis session."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterator, Optional

from ..models.session import LogEntry, LogKind


def _wall_clock() -> str:
    return datetime.now().strftime("%H:%M:%S")


class LogAccumulator:
    """Insertion-ordered log entries. Unbounded for the life of a session."""

    def __init__(self, clock: Optional[Callable[[], str]] = None):
        self._clock = clock or _wall_clock
        self._entries: list[LogEntry] = []

    def append(self, kind: LogKind | str, message: str) -> LogEntry:
        entry = LogEntry(kind=LogKind(kind), message=message, timestamp=self._clock())
        self._entries.append(entry)
        return entry

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(list(self._entries))
