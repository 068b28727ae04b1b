"""TurnDispatcher: the per-message dialogue state machine."""

import re
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from ..capabilities import ICapability
from ..channels import IChannelConfigProvider
from ..config import AssistantSettings
from ..fallback import IFallbackResponder
from ..intents import IIntentClassifier, is_continuation
from ..logging_config import get_logger
from ..models import (
    ACTION_KEY,
    CANDIDATES_KEY,
    CandidatePriority,
    CapabilityRequest,
    CapabilityResult,
    ChannelType,
    ConversationContext,
    ConversationKey,
    DialogueState,
    HistoryEntry,
    InboundMessage,
    IntentCandidate,
    IntentType,
    Outcome,
    TurnRecord,
)
from ..prompts import APOLOGY_REPLY, DONE_REPLY
from ..tracker import IConversationTracker
from .clock import Clock, utcnow
from .context_store import IConversationStore
from .history import IHistoryBuffer
from .retry import IRetryTracker

logger = get_logger(__name__)

GREETING = "Hello"
RETRY_KEYWORD = "schedule"
FORCED_CONFIDENCE = 1.0

_SELECTION = re.compile(r"\s*(\d+)\s*")
_MENTION = r"<@!?{}>"

# Intents that never go to a capability handler
CONVERSATIONAL_INTENTS = frozenset(
    {IntentType.CONVERSATION, IntentType.CONVERSATION_CONTINUATION}
)


class ITurnDispatcher(Protocol):
    async def handle(self, message: InboundMessage) -> str | None:
        """Process one inbound message. None means the bot stays silent."""
        ...


@dataclass
class TurnOutcome:
    """What a single handled turn produced."""

    reply: str
    intent: IntentType
    confidence: float
    success: bool
    error: str | None = None


def parse_selection(content: str) -> int | None:
    """The number in a bare-integer reply, else None."""
    match = _SELECTION.fullmatch(content)
    return int(match.group(1)) if match else None


class TurnDispatcher:
    """Routes each message through disambiguation, retry, continuation or a
    fresh classification, then updates conversation state from the outcome.

    State per conversation key lives in three in-memory stores: the
    conversation store (open flow), the history buffer and the retry
    tracker. Overlapping turns on the same key are not serialized; the
    later write wins.
    """

    def __init__(
        self,
        classifier: IIntentClassifier,
        conversations: IConversationStore,
        history: IHistoryBuffer,
        retries: IRetryTracker,
        capabilities: Sequence[ICapability],
        fallback: IFallbackResponder,
        channels: IChannelConfigProvider,
        tracker: IConversationTracker | None = None,
        settings: AssistantSettings | None = None,
        clock: Clock = utcnow,
    ):
        self._classifier = classifier
        self._conversations = conversations
        self._history = history
        self._retries = retries
        self._capabilities = {c.intent: c for c in capabilities}
        self._fallback = fallback
        self._channels = channels
        self._tracker = tracker
        self._settings = settings or AssistantSettings()
        self._clock = clock

    def clean_content(self, content: str) -> str:
        """Strip the bot's own mention; empty text becomes a greeting."""
        if self._settings.bot_user_id:
            content = re.sub(
                _MENTION.format(re.escape(self._settings.bot_user_id)), "", content
            )
        return content.strip() or GREETING

    def _retry_forced(self, key: ConversationKey, content: str, now: datetime) -> bool:
        marker = self._retries.check(key)
        return (
            marker is not None
            and now - marker.timestamp < self._settings.retry_window
            and RETRY_KEYWORD in content.lower()
        )

    def _should_respond(
        self,
        message: InboundMessage,
        content: str,
        context: ConversationContext | None,
        history: Sequence[HistoryEntry],
        forced_retry: bool,
        now: datetime,
    ) -> bool:
        if message.addressed or message.is_direct or forced_retry:
            return True

        window = self._settings.recent_activity_window
        if history and is_continuation(content, history):
            last_reply = self._history.last_assistant_entry(message.key)
            if last_reply is not None and now - last_reply.timestamp < window:
                logger.info(f"Treating message as continuation: {content[:100]}")
                return True

        return context is not None and now - context.last_updated < window

    async def handle(self, message: InboundMessage) -> str | None:
        started = time.monotonic()
        key = message.key
        content = self.clean_content(message.content)
        now = self._clock()

        if message.is_direct and not self._settings.enable_dms:
            logger.info(f"DMs disabled, ignoring message from {message.author_id}")
            return None

        context = self._conversations.get(key)
        history = self._history.get(key)
        forced_retry = self._retry_forced(key, content, now)

        if not self._should_respond(message, content, context, history, forced_retry, now):
            logger.debug(f"Not addressed, staying silent for {message.author_id}")
            return None

        channel_type = (
            ChannelType.OTHER
            if message.is_direct
            else await self._channels.get_channel_type(
                message.channel_id, message.community_id
            )
        )

        self._history.append(key, "user", content)
        turn = await self._route(message, content, channel_type, context, history, forced_retry)
        self._history.append(key, "assistant", turn.reply)

        latency_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"Handled turn in {latency_ms}ms",
            extra={
                "user_id": message.author_id,
                "channel_id": message.channel_id,
                "intent": turn.intent.value,
                "confidence": turn.confidence,
                "state": context.state.value if context else DialogueState.IDLE.value,
            },
        )
        await self._track(message, content, channel_type, turn, latency_ms)
        return turn.reply

    async def _route(
        self,
        message: InboundMessage,
        content: str,
        channel_type: ChannelType,
        context: ConversationContext | None,
        history: Sequence[HistoryEntry],
        forced_retry: bool,
    ) -> TurnOutcome:
        key = message.key
        state = context.state if context else DialogueState.IDLE

        if state == DialogueState.DISAMBIGUATION:
            index = parse_selection(content)
            capability = self._capabilities.get(context.pending_intent)
            resolve = getattr(capability, "resolve_selection", None)
            if index is not None and resolve is not None:
                request = self._request(message, content, channel_type)
                return await self._invoke(
                    key,
                    capability,
                    IntentCandidate(
                        type=context.pending_intent,
                        confidence=FORCED_CONFIDENCE,
                        priority=CandidatePriority.CONTEXT_CONTINUATION,
                    ),
                    request,
                    lambda: resolve(
                        request,
                        index,
                        context.data.get(CANDIDATES_KEY, []),
                        context.data.get(ACTION_KEY),
                    ),
                    accumulated_text=context.accumulated_text,
                )

        if forced_retry:
            logger.info(f"Retrying failed event creation: {content[:100]}")
            candidate = IntentCandidate(
                type=IntentType.EVENT_CREATION,
                confidence=FORCED_CONFIDENCE,
                priority=CandidatePriority.EVENT_CREATION,
            )
        else:
            candidate = self._classifier.classify(content, channel_type, context, history)

        capability = self._capabilities.get(candidate.type)

        # An open flow for the same intent always continues
        if (
            context is not None
            and capability is not None
            and context.pending_intent == candidate.type
        ):
            accumulated = (
                f"{context.accumulated_text}. {content}"
                if context.accumulated_text
                else content
            )
            if state == DialogueState.DISAMBIGUATION:
                seed = context.data.get(ACTION_KEY) or {}
            else:
                seed = context.data
            request = self._request(
                message, accumulated, channel_type, seed_data=seed, latest=content
            )
            return await self._invoke(
                key,
                capability,
                candidate,
                request,
                lambda: capability.process(request),
                accumulated_text=accumulated,
            )

        threshold = (
            self._settings.schedule_channel_threshold
            if channel_type == ChannelType.SCHEDULE
            else self._settings.default_channel_threshold
        )
        if (
            capability is None
            or candidate.type in CONVERSATIONAL_INTENTS
            or candidate.confidence < threshold
        ):
            reply = await self._fallback.respond(
                content,
                channel_type,
                self._history.get(key),
                community_id=message.community_id,
            )
            return TurnOutcome(
                reply=reply,
                intent=candidate.type,
                confidence=candidate.confidence,
                success=True,
            )

        request = self._request(message, content, channel_type, details=candidate.details)
        return await self._invoke(
            key,
            capability,
            candidate,
            request,
            lambda: capability.process(request),
            accumulated_text=content,
        )

    def _request(
        self,
        message: InboundMessage,
        content: str,
        channel_type: ChannelType,
        seed_data: dict[str, Any] | None = None,
        details: dict[str, Any] | None = None,
        latest: str | None = None,
    ) -> CapabilityRequest:
        return CapabilityRequest(
            content=content,
            message=message,
            channel_type=channel_type,
            seed_data=dict(seed_data or {}),
            details=details,
            history=self._history.get(message.key),
            latest=latest or content,
        )

    async def _invoke(
        self,
        key: ConversationKey,
        capability: ICapability,
        candidate: IntentCandidate,
        request: CapabilityRequest,
        call: Callable[[], Awaitable[CapabilityResult]],
        accumulated_text: str,
    ) -> TurnOutcome:
        """Run a capability and move the conversation to its next state."""
        intent = candidate.type
        try:
            result = await call()
        except Exception as e:
            logger.error(f"{intent.value} handler failed: {e}", exc_info=True)
            return self._apologize(key, candidate, e)

        try:
            reply = await capability.render_response(result)
        except Exception as e:
            logger.error(f"{intent.value} reply failed: {e}", exc_info=True)
            if not result.success:
                return self._apologize(key, candidate, e)
            # Succeeded work stands, only its wording is lost
            reply = DONE_REPLY

        outcome = result.outcome
        if outcome == Outcome.SUCCESS:
            self._conversations.clear(key)
            if intent == IntentType.EVENT_CREATION:
                self._retries.clear(key)
        elif outcome == Outcome.INCOMPLETE:
            self._conversations.update(
                key,
                {
                    "pending_intent": intent,
                    "accumulated_text": accumulated_text,
                    "data": {**request.seed_data, **result.data},
                },
            )
        elif outcome == Outcome.AMBIGUOUS:
            self._conversations.update(
                key,
                {
                    "pending_intent": intent,
                    "accumulated_text": accumulated_text,
                    "data": {
                        CANDIDATES_KEY: result.ambiguous_candidates,
                        ACTION_KEY: result.action,
                    },
                },
            )
        else:
            logger.warning(f"{intent.value} failed: {result.error}")
            self._fail(key, intent)

        return TurnOutcome(
            reply=reply,
            intent=intent,
            confidence=candidate.confidence,
            success=result.success,
            error=result.error,
        )

    def _apologize(
        self, key: ConversationKey, candidate: IntentCandidate, error: Exception
    ) -> TurnOutcome:
        self._fail(key, candidate.type)
        return TurnOutcome(
            reply=APOLOGY_REPLY,
            intent=candidate.type,
            confidence=candidate.confidence,
            success=False,
            error=str(error),
        )

    def _fail(self, key: ConversationKey, intent: IntentType) -> None:
        self._conversations.clear(key)
        if intent == IntentType.EVENT_CREATION:
            self._retries.mark_failed(key)

    async def _track(
        self,
        message: InboundMessage,
        content: str,
        channel_type: ChannelType,
        turn: TurnOutcome,
        latency_ms: int,
    ) -> None:
        if self._tracker is None:
            return
        record = TurnRecord(
            user_id=message.author_id,
            channel_id=message.channel_id,
            community_id=message.community_id,
            message=content,
            detected_intent=turn.intent.value,
            confidence=turn.confidence,
            channel_type=channel_type.value,
            success=turn.success,
            response=turn.reply,
            latency_ms=latency_ms,
            error=turn.error,
        )
        try:
            await self._tracker.track_turn(record)
        except Exception as e:
            logger.warning(f"Turn tracking failed: {e}")
