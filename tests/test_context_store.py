"""Tests for ConversationStore."""

import pytest

from pvpal.dialogue import ConversationStore
from pvpal.models import (
    ConversationKey,
    DialogueState,
    IntentType,
)

KEY = ConversationKey("u1", "c1")


class TestConversationStoreGet:
    """Tests for ConversationStore.get()."""

    def test_missing_key(self, clock):
        """Test that an unknown key has no context."""
        store = ConversationStore(clock=clock)
        assert store.get(KEY) is None

    def test_fresh_context_is_returned(self, clock):
        """Test that a context read within the TTL is present."""
        store = ConversationStore(clock=clock)
        store.update(KEY, {"pending_intent": IntentType.EVENT_CREATION})
        clock.advance(minutes=30)

        context = store.get(KEY)
        assert context is not None
        assert context.pending_intent == IntentType.EVENT_CREATION

    def test_expired_context_is_absent(self, clock):
        """Test that a context read just past 30 minutes is gone."""
        store = ConversationStore(clock=clock)
        store.update(
            KEY,
            {
                "pending_intent": IntentType.EVENT_CREATION,
                "data": {"game_mode": "RBGs"},
            },
        )
        clock.advance(minutes=30, milliseconds=1)

        assert store.get(KEY) is None
        # Lazy expiry removed it
        assert len(store) == 0


class TestConversationStoreUpdate:
    """Tests for ConversationStore.update()."""

    def test_update_creates_context(self, clock):
        """Test that update on a missing key creates a context."""
        store = ConversationStore(clock=clock)
        context = store.update(KEY, {"accumulated_text": "schedule RBGs"})

        assert context.accumulated_text == "schedule RBGs"
        assert context.pending_intent is None
        assert context.last_updated == clock.now

    def test_update_replaces_data_wholesale(self, clock):
        """Test that data is replaced, not deep-merged, and siblings survive."""
        store = ConversationStore(clock=clock)
        store.update(
            KEY,
            {"pending_intent": IntentType.EVENT_CREATION, "data": {"y": 2}},
        )
        clock.advance(minutes=1)

        context = store.update(KEY, {"data": {"x": 1}})

        assert context.pending_intent == IntentType.EVENT_CREATION
        assert context.data == {"x": 1}
        assert context.last_updated == clock.now

    def test_update_refreshes_ttl(self, clock):
        """Test that an update restarts the expiry window."""
        store = ConversationStore(clock=clock)
        store.update(KEY, {"pending_intent": IntentType.PARTICIPATION})
        clock.advance(minutes=25)
        store.update(KEY, {"accumulated_text": "more"})
        clock.advance(minutes=25)

        assert store.get(KEY) is not None

    def test_update_rejects_unknown_fields(self, clock):
        """Test that only context fields can be merged."""
        store = ConversationStore(clock=clock)
        with pytest.raises(ValueError):
            store.update(KEY, {"last_updated": clock.now})

    def test_update_after_expiry_starts_fresh(self, clock):
        """Test that an expired context is not merged into."""
        store = ConversationStore(clock=clock)
        store.update(
            KEY,
            {"pending_intent": IntentType.EVENT_CREATION, "accumulated_text": "old"},
        )
        clock.advance(minutes=45)

        context = store.update(KEY, {"data": {"x": 1}})

        assert context.pending_intent is None
        assert context.accumulated_text == ""


class TestConversationStoreClear:
    """Tests for ConversationStore.clear() and sweep()."""

    def test_clear_absent_key_is_noop(self, clock):
        """Test that clearing an unknown key does nothing."""
        store = ConversationStore(clock=clock)
        store.clear(KEY)
        assert store.get(KEY) is None

    def test_clear_removes_context(self, clock):
        """Test that clear deletes the context."""
        store = ConversationStore(clock=clock)
        store.update(KEY, {"pending_intent": IntentType.CONFIGURATION})
        store.clear(KEY)
        assert store.get(KEY) is None

    def test_sweep_removes_only_stale(self, clock):
        """Test that sweep deletes expired contexts and keeps fresh ones."""
        store = ConversationStore(clock=clock)
        stale = ConversationKey("u2", "c1")
        store.update(stale, {"pending_intent": IntentType.EVENT_CREATION})
        clock.advance(minutes=20)
        store.update(KEY, {"pending_intent": IntentType.EVENT_CREATION})
        clock.advance(minutes=15)

        assert store.sweep() == 1
        assert len(store) == 1
        assert store.get(KEY) is not None


class TestConversationContextState:
    """Tests for ConversationContext.state."""

    def test_states(self, clock):
        """Test IDLE, CONTINUATION and DISAMBIGUATION derivation."""
        store = ConversationStore(clock=clock)

        context = store.update(KEY, {"accumulated_text": "x"})
        assert context.state == DialogueState.IDLE

        context = store.update(KEY, {"pending_intent": IntentType.PARTICIPATION})
        assert context.state == DialogueState.CONTINUATION

        context = store.update(KEY, {"data": {"candidates": [{"session_id": "s1"}]}})
        assert context.state == DialogueState.DISAMBIGUATION
