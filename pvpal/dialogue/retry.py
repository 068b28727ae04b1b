"""RetryTracker implementation."""

from datetime import timedelta
from typing import Protocol

from ..logging_config import get_logger
from ..models import ConversationKey, IntentType, RetryMarker
from .clock import Clock, utcnow

logger = get_logger(__name__)


class IRetryTracker(Protocol):
    """Remembers recent capability failures so a retry can be recognised."""

    def mark_failed(
        self, key: ConversationKey, capability: IntentType = IntentType.EVENT_CREATION
    ) -> RetryMarker:
        ...

    def clear(
        self, key: ConversationKey, capability: IntentType = IntentType.EVENT_CREATION
    ) -> None:
        ...

    def check(
        self, key: ConversationKey, capability: IntentType = IntentType.EVENT_CREATION
    ) -> RetryMarker | None:
        ...


class RetryTracker:
    """Failure markers keyed by conversation and capability.

    ``check`` never expires a marker; callers apply their own relevance
    window to ``marker.timestamp``.
    """

    def __init__(self, clock: Clock = utcnow):
        self._clock = clock
        self._markers: dict[tuple[str, str, IntentType], RetryMarker] = {}

    def mark_failed(
        self, key: ConversationKey, capability: IntentType = IntentType.EVENT_CREATION
    ) -> RetryMarker:
        marker = RetryMarker(timestamp=self._clock())
        self._markers[(*key, capability)] = marker
        logger.info(
            "Tracked failed %s for user %s in channel %s",
            capability.value,
            key.user_id,
            key.channel_id,
        )
        return marker

    def clear(
        self, key: ConversationKey, capability: IntentType = IntentType.EVENT_CREATION
    ) -> None:
        if self._markers.pop((*key, capability), None) is not None:
            logger.info(
                "Cleared failed %s for user %s in channel %s",
                capability.value,
                key.user_id,
                key.channel_id,
            )

    def check(
        self, key: ConversationKey, capability: IntentType = IntentType.EVENT_CREATION
    ) -> RetryMarker | None:
        return self._markers.get((*key, capability))

    def sweep(self, max_age: timedelta) -> int:
        """Drop markers older than ``max_age``. Returns the number removed."""
        cutoff = self._clock() - max_age
        stale = [k for k, marker in self._markers.items() if marker.timestamp < cutoff]
        for k in stale:
            self._markers.pop(k, None)
        return len(stale)

    def __len__(self) -> int:
        return len(self._markers)
