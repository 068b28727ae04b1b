"""IntentClassifier implementation."""

from collections.abc import Sequence
from typing import Protocol

from ..logging_config import get_logger
from ..models import (
    CandidatePriority,
    ChannelType,
    ConversationContext,
    HistoryEntry,
    IntentCandidate,
    IntentType,
)
from .continuation import is_continuation
from .detectors import IDetector, default_detectors

logger = get_logger(__name__)

CONTEXT_CONTINUATION_CONFIDENCE = 0.89
CONTEXT_STALE_CONFIDENCE = 0.75
CONVERSATION_CONTINUATION_CONFIDENCE = 0.88
DEFAULT_REGULAR_CONFIDENCE = 0.7
DEFAULT_OTHER_CONFIDENCE = 0.5


class IIntentClassifier(Protocol):
    """Picks the most likely intent for a message."""

    def classify(
        self,
        text: str,
        channel_type: ChannelType,
        context: ConversationContext | None,
        history: Sequence[HistoryEntry],
    ) -> IntentCandidate:
        ...


class IntentClassifier:
    """Deterministic scorer combining detectors, open context and history."""

    def __init__(self, detectors: list[IDetector] | None = None):
        self._detectors = detectors if detectors is not None else default_detectors()

    def candidates(
        self,
        text: str,
        channel_type: ChannelType,
        context: ConversationContext | None,
        history: Sequence[HistoryEntry],
    ) -> list[IntentCandidate]:
        """All candidates for ``text``, best first."""
        found: list[IntentCandidate] = []

        for detector in self._detectors:
            candidate = detector.detect(text, channel_type)
            if candidate is not None:
                found.append(candidate)

        continuing = is_continuation(text, history)

        # An open flow beats noise but not a clearly new explicit command
        if context is not None and context.pending_intent is not None:
            found.append(
                IntentCandidate(
                    type=context.pending_intent,
                    confidence=(
                        CONTEXT_CONTINUATION_CONFIDENCE
                        if continuing
                        else CONTEXT_STALE_CONFIDENCE
                    ),
                    priority=CandidatePriority.CONTEXT_CONTINUATION,
                    context=context,
                )
            )

        if continuing:
            found.append(
                IntentCandidate(
                    type=IntentType.CONVERSATION_CONTINUATION,
                    confidence=CONVERSATION_CONTINUATION_CONFIDENCE,
                    priority=CandidatePriority.CONVERSATION_CONTINUATION,
                )
            )

        if not found:
            found.append(
                IntentCandidate(
                    type=IntentType.CONVERSATION,
                    confidence=(
                        DEFAULT_REGULAR_CONFIDENCE
                        if channel_type == ChannelType.REGULAR
                        else DEFAULT_OTHER_CONFIDENCE
                    ),
                    priority=CandidatePriority.CONVERSATION,
                )
            )

        found.sort(key=lambda c: (-c.confidence, c.priority))
        return found

    def classify(
        self,
        text: str,
        channel_type: ChannelType,
        context: ConversationContext | None,
        history: Sequence[HistoryEntry],
    ) -> IntentCandidate:
        """The single best candidate for ``text``."""
        ranked = self.candidates(text, channel_type, context, history)
        top = ranked[0]
        logger.debug(
            "Ranked %d candidates, top %s (%.2f)",
            len(ranked),
            top.type.value,
            top.confidence,
        )
        return top
