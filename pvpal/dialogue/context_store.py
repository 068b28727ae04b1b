"""ConversationStore implementation."""

import dataclasses
from datetime import timedelta
from typing import Any, Protocol

from ..logging_config import get_logger
from ..models import ConversationContext, ConversationKey
from .clock import Clock, utcnow

logger = get_logger(__name__)

DEFAULT_TTL = timedelta(minutes=30)

_MERGEABLE_FIELDS = frozenset({"pending_intent", "accumulated_text", "data"})


class IConversationStore(Protocol):
    """Per-conversation open-flow state with lazy TTL expiry."""

    def get(self, key: ConversationKey) -> ConversationContext | None:
        """Context for ``key``, or None if missing or expired."""
        ...

    def update(
        self, key: ConversationKey, partial: dict[str, Any]
    ) -> ConversationContext:
        """Shallow-merge ``partial`` into the stored context and refresh it."""
        ...

    def clear(self, key: ConversationKey) -> None:
        """Delete the context for ``key``. No-op if absent."""
        ...

    def sweep(self) -> int:
        """Delete every expired context. Returns the number removed."""
        ...


class ConversationStore:
    """In-memory conversation store.

    Expiry is lazy: a context older than the TTL is treated as absent on
    read and removed then, or by the next ``sweep()``.
    """

    def __init__(self, ttl: timedelta = DEFAULT_TTL, clock: Clock = utcnow):
        self._ttl = ttl
        self._clock = clock
        self._contexts: dict[ConversationKey, ConversationContext] = {}

    def _expired(self, context: ConversationContext) -> bool:
        return self._clock() - context.last_updated > self._ttl

    def get(self, key: ConversationKey) -> ConversationContext | None:
        context = self._contexts.get(key)
        if context is None:
            return None
        if self._expired(context):
            logger.debug("Conversation context expired for %s", key)
            self._contexts.pop(key, None)
            return None
        return context

    def update(
        self, key: ConversationKey, partial: dict[str, Any]
    ) -> ConversationContext:
        unknown = set(partial) - _MERGEABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown context fields: {sorted(unknown)}")

        now = self._clock()
        current = self.get(key)
        if current is None:
            current = ConversationContext(last_updated=now)

        # ``data`` is replaced wholesale, never deep-merged
        merged = dataclasses.replace(current, **partial, last_updated=now)
        self._contexts[key] = merged
        return merged

    def clear(self, key: ConversationKey) -> None:
        self._contexts.pop(key, None)

    def sweep(self) -> int:
        stale = [key for key, ctx in self._contexts.items() if self._expired(ctx)]
        for key in stale:
            self._contexts.pop(key, None)
        return len(stale)

    def __len__(self) -> int:
        return len(self._contexts)
