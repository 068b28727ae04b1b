"""StateSweeper: periodic pruning of the in-memory dialogue stores."""

import asyncio
from datetime import timedelta

from ..logging_config import get_logger
from .context_store import IConversationStore
from .history import IHistoryBuffer
from .retry import RetryTracker

logger = get_logger(__name__)


class StateSweeper:
    """One background task that expires stale history, contexts and retry markers.

    Reads already treat stale entries as absent; sweeping only bounds memory.
    """

    def __init__(
        self,
        conversations: IConversationStore,
        history: IHistoryBuffer,
        retries: RetryTracker,
        retry_max_age: timedelta = timedelta(minutes=5),
        interval_seconds: float = 60.0,
    ):
        self._conversations = conversations
        self._history = history
        self._retries = retries
        self._retry_max_age = retry_max_age
        self._interval = interval_seconds
        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def sweep_once(self) -> dict[str, int]:
        """Prune every store now. Returns removed counts per store."""
        removed = {
            "contexts": self._conversations.sweep(),
            "history_entries": self._history.sweep(),
            "retry_markers": self._retries.sweep(self._retry_max_age),
        }
        if any(removed.values()):
            logger.debug(f"Swept dialogue state: {removed}")
        return removed

    async def start(self) -> None:
        if self._running:
            return
        logger.info(f"Starting state sweeper (every {self._interval}s)")
        self._running = True
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        logger.info("Stopping state sweeper")
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._interval)
                self.sweep_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"State sweep error: {e}", exc_info=True)
