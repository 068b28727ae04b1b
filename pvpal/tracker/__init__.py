"""Turn tracking."""

from .tracker import ConversationTracker, IConversationTracker

__all__ = ["ConversationTracker", "IConversationTracker"]
