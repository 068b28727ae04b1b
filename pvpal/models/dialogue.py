"""Dialogue-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Literal, NamedTuple


class ConversationKey(NamedTuple):
    """Identifies one conversation: a user in a channel."""

    user_id: str
    channel_id: str


class IntentType(str, Enum):
    """Intents the classifier can produce."""

    EVENT_CREATION = "event_creation"
    CONFIGURATION = "configuration"
    PARTICIPATION = "participation"
    SCHEDULE_INFO = "schedule_info"
    BANTER = "banter"
    CONVERSATION_CONTINUATION = "conversation_continuation"
    CONVERSATION = "conversation"


class ChannelType(str, Enum):
    """Classification of the channel a message came from."""

    SCHEDULE = "schedule"
    REGULAR = "regular"
    EVENTS = "events"
    OTHER = "other"


class CandidatePriority(IntEnum):
    """Tie-break order for equally confident candidates (lower wins)."""

    EVENT_CREATION = 0
    CONFIGURATION = 1
    PARTICIPATION = 2
    SCHEDULE_INFO = 3
    CONTEXT_CONTINUATION = 4
    CONVERSATION_CONTINUATION = 5
    BANTER = 6
    CONVERSATION = 7


class DialogueState(str, Enum):
    """Where a conversation sits in the state machine."""

    IDLE = "idle"
    CONTINUATION = "continuation"
    DISAMBIGUATION = "disambiguation"


# Keys inside ConversationContext.data used by the disambiguation flow
CANDIDATES_KEY = "candidates"
ACTION_KEY = "action"


@dataclass
class ConversationContext:
    """Open multi-turn flow for one conversation key."""

    last_updated: datetime
    pending_intent: IntentType | None = None
    accumulated_text: str = ""
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def state(self) -> DialogueState:
        if self.pending_intent is None:
            return DialogueState.IDLE
        if self.data.get(CANDIDATES_KEY):
            return DialogueState.DISAMBIGUATION
        return DialogueState.CONTINUATION


@dataclass
class HistoryEntry:
    """A single remembered turn."""

    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime


@dataclass
class RetryMarker:
    """Records that a capability recently failed for a conversation."""

    timestamp: datetime
    attempted: bool = True


@dataclass
class IntentCandidate:
    """One scored interpretation of a message, produced fresh every turn."""

    type: IntentType
    confidence: float
    priority: CandidatePriority
    details: dict[str, Any] | None = None
    context: ConversationContext | None = None
