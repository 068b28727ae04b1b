"""Pytest configuration and fixtures."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 20, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    """Create a fake clock."""
    return FakeClock()


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from pvpal.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def tracker(storage):
    """Create ConversationTracker with storage."""
    from pvpal.tracker import ConversationTracker

    return ConversationTracker(storage)


@pytest.fixture
def mock_llm():
    """Create mock LLM provider."""
    llm = Mock()
    llm.complete = AsyncMock(return_value="Test response")
    return llm


@pytest.fixture
def settings():
    """Default settings with known channel ids."""
    from pvpal.config import AssistantSettings

    return AssistantSettings(
        schedule_channel_id="sched",
        events_channel_id="events",
        regular_channel_id="general",
    )


@pytest.fixture
def channels(storage, settings):
    """Create ChannelConfigProvider."""
    from pvpal.channels import ChannelConfigProvider

    return ChannelConfigProvider(storage, settings)


@pytest.fixture
def fallback(mock_llm, channels, settings):
    """Create FallbackResponder backed by the mock LLM."""
    from pvpal.fallback import FallbackResponder

    return FallbackResponder(mock_llm, channels, settings)


@pytest.fixture
def dispatcher_factory(storage, channels, fallback, tracker, settings, clock):
    """Build a TurnDispatcher over fresh in-memory stores.

    Capabilities run without an LLM so extraction is keyword based.
    """
    from pvpal.capabilities import (
        BanterCapability,
        ConfigurationCapability,
        EventCreationCapability,
        ParticipationCapability,
        ScheduleInfoCapability,
    )
    from pvpal.dialogue import (
        ConversationStore,
        HistoryBuffer,
        RetryTracker,
        TurnDispatcher,
    )
    from pvpal.intents import IntentClassifier

    def build(classifier=None, capabilities=None):
        conversations = ConversationStore(clock=clock)
        history = HistoryBuffer(clock=clock)
        retries = RetryTracker(clock=clock)
        dispatcher = TurnDispatcher(
            classifier=classifier or IntentClassifier(),
            conversations=conversations,
            history=history,
            retries=retries,
            capabilities=capabilities
            or [
                EventCreationCapability(storage),
                ConfigurationCapability(storage),
                ParticipationCapability(storage),
                ScheduleInfoCapability(storage),
                BanterCapability(fallback),
            ],
            fallback=fallback,
            channels=channels,
            tracker=tracker,
            settings=settings,
            clock=clock,
        )
        return dispatcher, conversations, history, retries

    return build


@pytest.fixture
def make_message():
    """Build InboundMessages with sensible defaults."""
    from pvpal.models import InboundMessage

    def build(content, **kwargs):
        defaults = {
            "author_id": "u1",
            "channel_id": "sched",
            "community_id": "guild1",
            "addressed": True,
        }
        defaults.update(kwargs)
        return InboundMessage(content=content, **defaults)

    return build
