"""Event creation capability."""

import re
from typing import Any

from ..intents.detectors import parse_game_mode, parse_time_reference
from ..llm import ILLMProvider
from ..logging_config import get_logger
from ..models import (
    CapabilityRequest,
    CapabilityResult,
    IntentType,
    Outcome,
    Session,
)
from ..prompts import combined_prompt
from ..storage import IStorage
from .extraction import extract_fields

logger = get_logger(__name__)

REQUIRED_FIELDS = ("game_mode", "date", "time")
OPTIONAL_FIELDS = ("notes", "tier")

FIELD_LABELS = {"game_mode": "game mode", "date": "date", "time": "time"}

_CLOCK_TIME = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*(am|pm)\b|\b(\d{1,2}):(\d{2})\b")

EXTRACTION_PROMPT = """\
Extract the PvP session details from the message below. Return ONLY a JSON object with:
- game_mode: "2v2", "3v3" or "RBGs"
- date: the day, e.g. "tomorrow", "friday" or "10-24"
- time: 24-hour "HH:MM"
- notes: anything else worth keeping
- tier: "main" or "alt" (RBGs only)
Use null for anything the message does not say. When a later part of the
message corrects an earlier detail, use the corrected value.

Message: "{content}"
"""


def normalize_time(value: str | None) -> str | None:
    """'8pm' -> '20:00', '8:30 am' -> '08:30', '20:00' unchanged."""
    if not isinstance(value, str) or not value:
        return value
    match = _CLOCK_TIME.search(value.lower())
    if not match:
        return value

    if match.group(3):
        hour = int(match.group(1)) % 12
        if match.group(3) == "pm":
            hour += 12
        minute = int(match.group(2) or 0)
    else:
        hour, minute = int(match.group(4)), int(match.group(5))

    if hour > 23 or minute > 59:
        return value
    return f"{hour:02d}:{minute:02d}"


def keyword_fields(content: str) -> dict[str, Any]:
    """Session fields recognisable without the language model."""
    fields: dict[str, Any] = {}

    game_mode = parse_game_mode(content)
    if game_mode:
        fields["game_mode"] = game_mode

    day = parse_time_reference(content)
    if day and day != "next":
        fields["date"] = day

    match = _CLOCK_TIME.search(content.lower())
    if match:
        fields["time"] = normalize_time(match.group(0))

    return fields


class EventCreationCapability:
    """Creates a PvP session from free text, asking for whatever is missing."""

    intent = IntentType.EVENT_CREATION

    def __init__(self, storage: IStorage, llm: ILLMProvider | None = None):
        self._storage = storage
        self._llm = llm

    async def process(self, request: CapabilityRequest) -> CapabilityResult:
        community_id = request.message.community_id
        if not community_id:
            return CapabilityResult.failure(
                "Missing community ID. This event must be created in a server."
            )

        extracted = keyword_fields(request.content)
        extracted.update(
            await extract_fields(
                self._llm,
                combined_prompt(["event"]),
                EXTRACTION_PROMPT.format(content=request.content),
            )
        )
        # A follow-up that restates a value corrects the earlier one
        extracted.update(keyword_fields(request.corrections))

        # Fresh extraction wins over what earlier turns collected
        fields = {**request.seed_data, **extracted}
        fields["time"] = normalize_time(fields.get("time"))
        fields = {
            k: v
            for k, v in fields.items()
            if k in REQUIRED_FIELDS + OPTIONAL_FIELDS and v
        }

        missing = [name for name in REQUIRED_FIELDS if not fields.get(name)]
        if missing:
            logger.info(f"Event creation incomplete, missing {missing}")
            return CapabilityResult(success=False, data=fields, missing_fields=missing)

        session = await self._storage.create_session(
            Session(
                session_id="",
                community_id=community_id,
                game_mode=fields["game_mode"],
                date=fields["date"],
                time=fields["time"],
                host_id=request.message.author_id,
                notes=fields.get("notes", ""),
                tier=fields.get("tier"),
            )
        )
        logger.info(
            f"Created session {session.session_id} ({session.game_mode} "
            f"{session.date} {session.time})"
        )
        return CapabilityResult(
            success=True, data={**fields, "session_id": session.session_id}
        )

    async def render_response(self, result: CapabilityResult) -> str:
        outcome = result.outcome
        if outcome == Outcome.SUCCESS:
            data = result.data
            reply = (
                f"Done! {data['game_mode']} is on the calendar for {data['date']} "
                f"at {data['time']}. Session ID: {data['session_id']}"
            )
            if data.get("notes"):
                reply += f"\nNotes: {data['notes']}"
            return reply
        if outcome == Outcome.INCOMPLETE:
            labels = [FIELD_LABELS.get(name, name) for name in result.missing_fields]
            return (
                "I need a bit more information to create this event. "
                f"Could you please tell me the {' and '.join(labels)}?"
            )
        return f"Sorry, I couldn't create that event: {result.error or 'unknown error'}"
