"""Core data models for the PvPal assistant."""

from .capabilities import CapabilityRequest, CapabilityResult, Outcome
from .dialogue import (
    ACTION_KEY,
    CANDIDATES_KEY,
    CandidatePriority,
    ChannelType,
    ConversationContext,
    ConversationKey,
    DialogueState,
    HistoryEntry,
    IntentCandidate,
    IntentType,
    RetryMarker,
)
from .messages import InboundMessage
from .sessions import CommunityConfig, Participant, Session
from .tracing import TurnRecord

__all__ = [
    # Dialogue
    "ACTION_KEY",
    "CANDIDATES_KEY",
    "CandidatePriority",
    "ChannelType",
    "ConversationContext",
    "ConversationKey",
    "DialogueState",
    "HistoryEntry",
    "IntentCandidate",
    "IntentType",
    "RetryMarker",
    # Messages
    "InboundMessage",
    # Capabilities
    "CapabilityRequest",
    "CapabilityResult",
    "Outcome",
    # Scheduling
    "CommunityConfig",
    "Participant",
    "Session",
    # Tracing
    "TurnRecord",
]
