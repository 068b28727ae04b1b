"""PvPal assistant: dialogue state machine for PvP session scheduling."""

from .app import Application, IApplication
from .channels import ChannelConfigProvider, IChannelConfigProvider
from .config import AssistantSettings
from .dialogue import (
    ConversationStore,
    HistoryBuffer,
    RetryTracker,
    StateSweeper,
    TurnDispatcher,
)
from .errors import (
    AssistantError,
    CapabilityError,
    ExtractionError,
    UpstreamUnavailableError,
)
from .fallback import FallbackResponder
from .intents import IntentClassifier, is_continuation
from .llm import ILLMProvider, LLMProvider
from .models import (
    ConversationContext,
    ConversationKey,
    DialogueState,
    InboundMessage,
    IntentType,
    TurnRecord,
)
from .storage import IStorage, Storage
from .tracker import ConversationTracker, IConversationTracker

__all__ = [
    # Application
    "Application",
    "IApplication",
    "AssistantSettings",
    # Models
    "ConversationContext",
    "ConversationKey",
    "DialogueState",
    "InboundMessage",
    "IntentType",
    "TurnRecord",
    # Dialogue
    "ConversationStore",
    "HistoryBuffer",
    "RetryTracker",
    "StateSweeper",
    "TurnDispatcher",
    "IntentClassifier",
    "is_continuation",
    # Components
    "ChannelConfigProvider",
    "IChannelConfigProvider",
    "FallbackResponder",
    "IStorage",
    "Storage",
    "ConversationTracker",
    "IConversationTracker",
    "ILLMProvider",
    "LLMProvider",
    # Errors
    "AssistantError",
    "CapabilityError",
    "ExtractionError",
    "UpstreamUnavailableError",
]
