"""Tests for StateSweeper."""

import asyncio

import pytest

from pvpal.dialogue import ConversationStore, HistoryBuffer, RetryTracker, StateSweeper
from pvpal.models import ConversationKey, IntentType

KEY = ConversationKey("u1", "c1")


@pytest.fixture
def stores(clock):
    return (
        ConversationStore(clock=clock),
        HistoryBuffer(clock=clock),
        RetryTracker(clock=clock),
    )


class TestStateSweeper:
    """Tests for StateSweeper."""

    def test_sweep_once_counts(self, stores, clock):
        """Test that a sweep reports what each store dropped."""
        conversations, history, retries = stores
        conversations.update(KEY, {"pending_intent": IntentType.EVENT_CREATION})
        history.append(KEY, "user", "a")
        history.append(KEY, "assistant", "b")
        retries.mark_failed(KEY)
        sweeper = StateSweeper(conversations, history, retries)

        assert sweeper.sweep_once() == {
            "contexts": 0,
            "history_entries": 0,
            "retry_markers": 0,
        }

        clock.advance(minutes=31)
        assert sweeper.sweep_once() == {
            "contexts": 1,
            "history_entries": 2,
            "retry_markers": 1,
        }

    def test_retry_markers_use_their_own_age(self, stores, clock):
        """Test that retry markers expire after five minutes."""
        conversations, history, retries = stores
        retries.mark_failed(KEY)
        sweeper = StateSweeper(conversations, history, retries)

        clock.advance(minutes=6)

        assert sweeper.sweep_once()["retry_markers"] == 1

    @pytest.mark.asyncio
    async def test_background_loop(self, stores, clock):
        """Test that the running sweeper prunes on its own."""
        conversations, history, retries = stores
        conversations.update(KEY, {"pending_intent": IntentType.PARTICIPATION})
        clock.advance(minutes=31)
        sweeper = StateSweeper(conversations, history, retries, interval_seconds=0.01)

        await sweeper.start()
        assert sweeper.running
        await asyncio.sleep(0.05)
        await sweeper.stop()

        assert not sweeper.running
        assert len(conversations) == 0

    @pytest.mark.asyncio
    async def test_stop_without_start(self, stores):
        """Test that stopping an idle sweeper is harmless."""
        sweeper = StateSweeper(*stores)
        await sweeper.stop()
        assert not sweeper.running
