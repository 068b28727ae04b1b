"""Tracker implementation for recording handled turns."""

from typing import Protocol

from ..logging_config import get_logger
from ..models import TurnRecord
from ..storage import IStorage

logger = get_logger(__name__)


class IConversationTracker(Protocol):
    """Records one TurnRecord per handled turn. Never raises."""

    async def track_turn(self, record: TurnRecord) -> None:
        ...


class ConversationTracker:
    """Writes TurnRecords to Storage.

    Tracking is best-effort: a failing write is logged and dropped so the
    user still gets a reply.
    """

    def __init__(self, storage: IStorage):
        self._storage = storage

    async def track_turn(self, record: TurnRecord) -> None:
        try:
            await self._storage.save_conversation_log(record)
        except Exception as e:
            logger.error(
                f"Failed to record turn: {e}",
                extra={"user_id": record.user_id, "channel_id": record.channel_id},
            )
            return

        logger.debug(
            "Recorded turn",
            extra={
                "user_id": record.user_id,
                "channel_id": record.channel_id,
                "intent": record.detected_intent,
                "confidence": record.confidence,
            },
        )
