"""FallbackResponder: free-text replies with the whole conversation as context."""

from collections.abc import Sequence
from typing import Protocol

from .channels import IChannelConfigProvider
from .config import AssistantSettings
from .errors import UpstreamUnavailableError
from .llm import ILLMProvider
from .logging_config import get_logger
from .models import ChannelType, HistoryEntry
from .prompts import (
    FALLBACK_ERROR_REPLY,
    LLM_OFFLINE_REPLY,
    combined_prompt,
    persona_prompt,
)

logger = get_logger(__name__)

CHANNEL_CONTEXT = {
    ChannelType.SCHEDULE: (
        "You are in the schedule channel, which is for organizing sessions. "
        "Help with event management and scheduling questions."
    ),
    ChannelType.REGULAR: (
        "You are in the general PvP channel. Show more personality, join the banter "
        "and only talk scheduling when asked."
    ),
    ChannelType.EVENTS: (
        "You are in the events channel, which mostly displays event information. "
        "Keep replies brief and about events."
    ),
}

CHANNEL_SECTIONS = {
    ChannelType.SCHEDULE: ["schedule_channel"],
    ChannelType.REGULAR: ["regular_channel", "banter"],
}

AWARENESS_PROMPT = """\
You are in a multi-turn conversation and the full history is provided. Refer back to
earlier messages when it helps, answer questions about what was said before, and keep
the same tone throughout."""

REGULAR_TEMPERATURE = 0.9
DEFAULT_TEMPERATURE = 0.7
UNHINGED_BOOST = 0.2


class IFallbackResponder(Protocol):
    async def respond(
        self,
        content: str,
        channel_type: ChannelType,
        history: Sequence[HistoryEntry],
        community_id: str | None = None,
        hint: str | None = None,
    ) -> str:
        ...


def history_messages(content: str, history: Sequence[HistoryEntry]) -> list[dict]:
    """Chat messages for the model, oldest first, always starting with the user."""
    messages = [{"role": entry.role, "content": entry.content} for entry in history]
    while messages and messages[0]["role"] != "user":
        messages.pop(0)
    if not messages or messages[-1]["role"] != "user":
        messages.append({"role": "user", "content": content})
    return messages


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


class FallbackResponder:
    """Answers anything no capability handled, in the community's persona."""

    def __init__(
        self,
        llm: ILLMProvider | None,
        channels: IChannelConfigProvider,
        settings: AssistantSettings | None = None,
    ):
        self._llm = llm
        self._channels = channels
        self._settings = settings or AssistantSettings()

    async def respond(
        self,
        content: str,
        channel_type: ChannelType,
        history: Sequence[HistoryEntry],
        community_id: str | None = None,
        hint: str | None = None,
    ) -> str:
        """Generate a reply; canned text when the model is missing or failing."""
        if self._llm is None:
            return LLM_OFFLINE_REPLY

        personality = await self._channels.get_personality(community_id)

        parts = [
            combined_prompt(CHANNEL_SECTIONS.get(channel_type, [])),
            persona_prompt(personality.persona, personality.sass_level),
        ]
        if channel_type in CHANNEL_CONTEXT:
            parts.append(CHANNEL_CONTEXT[channel_type])
        parts.append(AWARENESS_PROMPT)
        if hint:
            parts.append(hint)

        temperature = (
            REGULAR_TEMPERATURE if channel_type == ChannelType.REGULAR else DEFAULT_TEMPERATURE
        )
        if personality.persona == "unhinged":
            temperature = min(1.0, temperature + UNHINGED_BOOST)

        try:
            reply = await self._llm.complete(
                messages=history_messages(content, history),
                system="\n\n".join(parts),
                max_tokens=self._settings.max_tokens,
                temperature=temperature,
            )
        except UpstreamUnavailableError as e:
            logger.error(f"Fallback reply failed: {e}")
            return FALLBACK_ERROR_REPLY

        if not reply:
            return FALLBACK_ERROR_REPLY
        return truncate(reply, self._settings.max_response_length)
