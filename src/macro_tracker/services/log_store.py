"""In-memory log store for the selected date."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date

from macro_tracker.domain.logs import LogEntry

CHANGE_ADD = "add"
CHANGE_REMOVE = "remove"
CHANGE_REPLACE = "replace"


@dataclass(frozen=True)
class StoreChange:
    """Notification sent to listeners after every mutation."""

    kind: str
    day: date
    entries: list[LogEntry]


StoreListener = Callable[[StoreChange], None]


@dataclass
class LocalLogStore:
    """Holds the entries of the currently selected date.

    Listeners run synchronously inside the mutating call, so totals and sync
    scheduling never lag behind the entries they describe.
    """

    day: date
    _entries: list[LogEntry] = field(default_factory=list)
    _listeners: list[StoreListener] = field(default_factory=list)

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def subscribe(self, listener: StoreListener) -> None:
        """Register a listener for store mutations."""
        self._listeners.append(listener)

    def add(self, entry: LogEntry) -> LogEntry:
        """Append an entry and return it."""
        if any(existing.id == entry.id for existing in self._entries):
            raise ValueError(f"Duplicate log entry id: {entry.id}")
        self._entries.append(entry)
        self._notify(CHANGE_ADD)
        return entry

    def remove(self, entry_id: str) -> bool:
        """Remove an entry; unknown ids are ignored."""
        remaining = [entry for entry in self._entries if entry.id != entry_id]
        if len(remaining) == len(self._entries):
            return False
        self._entries = remaining
        self._notify(CHANGE_REMOVE)
        return True

    def replace_all(self, day: date, entries: list[LogEntry]) -> None:
        """Replace the whole set, switching to ``day``."""
        self.day = day
        self._entries = _dedupe(entries)
        self._notify(CHANGE_REPLACE)

    def _notify(self, kind: str) -> None:
        change = StoreChange(kind=kind, day=self.day, entries=self.entries)
        for listener in self._listeners:
            listener(change)


def _dedupe(entries: list[LogEntry]) -> list[LogEntry]:
    seen: set[str] = set()
    unique: list[LogEntry] = []
    for entry in entries:
        if entry.id in seen:
            continue
        seen.add(entry.id)
        unique.append(entry)
    return unique
