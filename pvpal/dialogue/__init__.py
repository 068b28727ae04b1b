"""Dialogue state machine."""

from .clock import Clock, utcnow
from .context_store import ConversationStore, IConversationStore
from .dispatcher import ITurnDispatcher, TurnDispatcher, TurnOutcome, parse_selection
from .history import HistoryBuffer, IHistoryBuffer
from .retry import IRetryTracker, RetryTracker
from .sweeper import StateSweeper

__all__ = [
    "Clock",
    "utcnow",
    "ConversationStore",
    "IConversationStore",
    "HistoryBuffer",
    "IHistoryBuffer",
    "IRetryTracker",
    "RetryTracker",
    "ITurnDispatcher",
    "TurnDispatcher",
    "TurnOutcome",
    "parse_selection",
    "StateSweeper",
]
