"""HistoryBuffer implementation."""

from collections import deque
from datetime import timedelta
from typing import Literal, Protocol

from ..models import ConversationKey, HistoryEntry
from .clock import Clock, utcnow

DEFAULT_MAX_ENTRIES = 20
DEFAULT_TTL = timedelta(minutes=30)


class IHistoryBuffer(Protocol):
    """Bounded, advisory record of recent turns per conversation."""

    def append(
        self, key: ConversationKey, role: Literal["user", "assistant"], content: str
    ) -> HistoryEntry:
        """Record a turn, evicting the oldest entry beyond the cap."""
        ...

    def get(self, key: ConversationKey) -> list[HistoryEntry]:
        """Entries oldest to newest; empty for an unknown key."""
        ...

    def last_assistant_entry(self, key: ConversationKey) -> HistoryEntry | None:
        """Most recent reply in this conversation, if any."""
        ...

    def clear(self, key: ConversationKey) -> None:
        """Forget a conversation's history."""
        ...

    def sweep(self) -> int:
        """Prune stale entries. Returns the number removed."""
        ...


class HistoryBuffer:
    """Per-conversation ring buffer of the last ``max_entries`` turns."""

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl: timedelta = DEFAULT_TTL,
        clock: Clock = utcnow,
    ):
        self._max_entries = max_entries
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[ConversationKey, deque[HistoryEntry]] = {}

    def append(
        self, key: ConversationKey, role: Literal["user", "assistant"], content: str
    ) -> HistoryEntry:
        """Add an entry stamped with the current time."""
        entry = HistoryEntry(role=role, content=content, timestamp=self._clock())
        entries = self._entries.get(key)
        if entries is None:
            entries = deque(maxlen=self._max_entries)
            self._entries[key] = entries
        entries.append(entry)
        return entry

    def get(self, key: ConversationKey) -> list[HistoryEntry]:
        """Get a copy of the entries for ``key``."""
        entries = self._entries.get(key)
        return list(entries) if entries else []

    def last_assistant_entry(self, key: ConversationKey) -> HistoryEntry | None:
        """Most recent reply sent in this conversation, if any."""
        for entry in reversed(self._entries.get(key, ())):
            if entry.role == "assistant":
                return entry
        return None

    def clear(self, key: ConversationKey) -> None:
        """Drop the history for ``key``."""
        self._entries.pop(key, None)

    def sweep(self) -> int:
        """Remove entries older than the TTL and forget emptied keys."""
        cutoff = self._clock() - self._ttl
        removed = 0
        for key in list(self._entries):
            entries = self._entries.get(key)
            if entries is None:
                continue
            while entries and entries[0].timestamp < cutoff:
                entries.popleft()
                removed += 1
            if not entries:
                del self._entries[key]
        return removed

    def __len__(self) -> int:
        return len(self._entries)
