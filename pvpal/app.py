"""Application bootstrap and lifecycle management."""

import os
from typing import Protocol

from .capabilities import (
    BanterCapability,
    ConfigurationCapability,
    EventCreationCapability,
    ParticipationCapability,
    ScheduleInfoCapability,
)
from .channels import ChannelConfigProvider
from .config import AssistantSettings, resolve_db_path
from .dialogue import (
    ConversationStore,
    HistoryBuffer,
    RetryTracker,
    StateSweeper,
    TurnDispatcher,
)
from .fallback import FallbackResponder
from .intents import IntentClassifier
from .llm import ILLMProvider, LLMProvider
from .logging_config import get_logger
from .storage import IStorage, Storage
from .tracker import ConversationTracker

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        db_path: str | None = None,
        settings: AssistantSettings | None = None,
        llm: ILLMProvider | None = None,
    ):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        self._settings = settings or AssistantSettings.from_env()

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._tracker: ConversationTracker | None = None
        self._llm: ILLMProvider | None = llm
        self._conversations: ConversationStore | None = None
        self._history: HistoryBuffer | None = None
        self._retries: RetryTracker | None = None
        self._dispatcher: TurnDispatcher | None = None
        self._sweeper: StateSweeper | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. Tracker (depends on Storage)
        self._tracker = ConversationTracker(self._storage)

        # 3. LLMProvider (optional; capabilities fall back to keywords)
        if self._llm is None:
            if os.getenv("ANTHROPIC_API_KEY"):
                self._llm = LLMProvider(model=self._settings.model)
                logger.info("LLM provider initialized")
            else:
                logger.warning("ANTHROPIC_API_KEY not set, running without LLM")

        # 4. Channel config and fallback responder
        channels = ChannelConfigProvider(self._storage, self._settings)
        fallback = FallbackResponder(self._llm, channels, self._settings)

        # 5. In-memory dialogue state
        self._conversations = ConversationStore(ttl=self._settings.conversation_ttl)
        self._history = HistoryBuffer(
            max_entries=self._settings.max_history_messages,
            ttl=self._settings.conversation_ttl,
        )
        self._retries = RetryTracker()

        # 6. Dispatcher (depends on everything above)
        self._dispatcher = TurnDispatcher(
            classifier=IntentClassifier(),
            conversations=self._conversations,
            history=self._history,
            retries=self._retries,
            capabilities=[
                EventCreationCapability(self._storage, self._llm),
                ConfigurationCapability(self._storage, self._llm),
                ParticipationCapability(self._storage, self._llm),
                ScheduleInfoCapability(self._storage),
                BanterCapability(fallback),
            ],
            fallback=fallback,
            channels=channels,
            tracker=self._tracker,
            settings=self._settings,
        )
        logger.info("TurnDispatcher initialized")

        # 7. Sweeper (depends on the dialogue stores)
        self._sweeper = StateSweeper(
            self._conversations,
            self._history,
            self._retries,
            retry_max_age=self._settings.retry_window,
            interval_seconds=self._settings.sweep_interval_seconds,
        )
        await self._sweeper.start()
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._sweeper:
            await self._sweeper.stop()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Reset data between test runs."""
        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")

        # Dialogue state is advisory; fresh stores are equivalent to cleared ones
        if self._dispatcher:
            await self.stop()
            await self.start()
            logger.info("Reset complete")

    @property
    def settings(self) -> AssistantSettings:
        return self._settings

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def dispatcher(self) -> TurnDispatcher:
        """Get turn dispatcher instance."""
        if not self._dispatcher:
            raise RuntimeError("Application not started")
        return self._dispatcher

    @property
    def sweeper(self) -> StateSweeper:
        """Get state sweeper instance."""
        if not self._sweeper:
            raise RuntimeError("Application not started")
        return self._sweeper
