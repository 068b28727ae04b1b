"""Participation capability: join, leave, late, tentative, backup."""

from typing import Any

from ..intents.detectors import (
    ROLE_KEYWORDS,
    mentions_any,
    normalize_text,
    parse_game_mode,
    parse_time_reference,
)
from ..llm import ILLMProvider
from ..logging_config import get_logger
from ..models import (
    CapabilityRequest,
    CapabilityResult,
    IntentType,
    Outcome,
    Participant,
)
from ..models.sessions import PARTICIPATION_STATUSES
from ..prompts import combined_prompt
from ..storage import IStorage
from .base import render_choices
from .extraction import extract_fields

logger = get_logger(__name__)

DEFAULT_ACTION = "join"

# First match wins
ACTION_KEYWORDS = (
    ("leave", ("remove me", "count me out", "can't make it", "won't be able", "i'll miss")),
    ("late", ("i'll be late", "won't be on time", "running late", "be late")),
    ("tentative", ("tentative", "maybe", "i might")),
    ("backup", ("backup", "reserve")),
)

ROLE_ALIASES = {"heal": "healer", "damage": "dps"}

ACTION_PHRASES = {
    "join": "You're in",
    "leave": "You're out",
    "late": "Marked you as running late",
    "tentative": "Marked you as tentative",
    "backup": "You're on the bench as backup",
}

EXTRACTION_PROMPT = """\
Extract the participation details from the message below. Return ONLY a JSON object with:
- action: "join", "leave", "late", "tentative" or "backup"
- game_mode: "2v2", "3v3" or "RBGs"
- time_reference: "today", "tomorrow", "next" or a lowercase day name
- role: "tank", "healer" or "dps"
Use null for anything the message does not say. Use "today" for "tonight".

Message: "{content}"
"""


def keyword_fields(content: str) -> dict[str, Any]:
    text = normalize_text(content)
    fields: dict[str, Any] = {}

    for action, phrases in ACTION_KEYWORDS:
        if mentions_any(text, phrases):
            fields["action"] = action
            break

    game_mode = parse_game_mode(text)
    if game_mode:
        fields["game_mode"] = game_mode

    time_reference = parse_time_reference(text)
    if time_reference:
        fields["time_reference"] = time_reference

    role = next((r for r in ROLE_KEYWORDS if r in text.split()), None)
    if role:
        fields["role"] = ROLE_ALIASES.get(role, role)
    return fields


class ParticipationCapability:
    """Updates a user's attendance, asking which session when several match."""

    intent = IntentType.PARTICIPATION

    def __init__(self, storage: IStorage, llm: ILLMProvider | None = None):
        self._storage = storage
        self._llm = llm

    async def _details(self, request: CapabilityRequest) -> dict[str, Any]:
        details = keyword_fields(request.content)
        details.update(
            await extract_fields(
                self._llm,
                combined_prompt(["participation"]),
                EXTRACTION_PROMPT.format(content=request.content),
            )
        )
        details.update(keyword_fields(request.corrections))
        details = {**request.seed_data, **details}
        if details.get("action") not in PARTICIPATION_STATUSES:
            details["action"] = DEFAULT_ACTION
        return details

    async def process(self, request: CapabilityRequest) -> CapabilityResult:
        community_id = request.message.community_id
        if not community_id:
            return CapabilityResult.failure("Sign-ups only work inside a server.")

        details = await self._details(request)

        time_reference = details.get("time_reference")
        sessions = await self._storage.find_sessions(
            community_id,
            game_mode=details.get("game_mode"),
            date=time_reference if time_reference != "next" else None,
        )

        if not sessions:
            return CapabilityResult.failure("I couldn't find a session matching that.")

        if len(sessions) > 1 and time_reference != "next":
            logger.info(
                f"{len(sessions)} sessions match participation request from "
                f"{request.message.author_id}"
            )
            return CapabilityResult(
                success=False,
                ambiguous_candidates=[s.summary() for s in sessions],
                action=details,
            )

        # "next" means the soonest match
        return await self._apply(request, sessions[0].summary(), details)

    async def resolve_selection(
        self,
        request: CapabilityRequest,
        index: int,
        candidates: list[dict[str, Any]],
        action: dict[str, Any] | None,
    ) -> CapabilityResult:
        if index < 1 or index > len(candidates):
            return CapabilityResult.failure(
                f"Invalid selection. Please choose a number between 1 and {len(candidates)}."
            )

        details = dict(action or {})
        if not details.get("action"):
            logger.warning("No stored action for selection, defaulting to join")
            details["action"] = DEFAULT_ACTION

        logger.info(
            f"User {request.message.author_id} selected session {index} "
            f"({candidates[index - 1].get('session_id')})"
        )
        return await self._apply(request, candidates[index - 1], details)

    async def _apply(
        self,
        request: CapabilityRequest,
        session: dict[str, Any],
        details: dict[str, Any],
    ) -> CapabilityResult:
        participant = Participant(
            session_id=session["session_id"],
            user_id=request.message.author_id,
            status=details["action"],
            role=details.get("role"),
        )
        await self._storage.set_participation(participant)
        return CapabilityResult(
            success=True,
            data={**session, "status": participant.status, "role": participant.role},
        )

    async def render_response(self, result: CapabilityResult) -> str:
        outcome = result.outcome
        if outcome == Outcome.SUCCESS:
            data = result.data
            reply = (
                f"{ACTION_PHRASES.get(data['status'], 'Updated')} for "
                f"{data['game_mode']} on {data['date']} at {data['time']}"
            )
            if data.get("role"):
                reply += f" as {data['role']}"
            return reply + "."
        if outcome == Outcome.AMBIGUOUS:
            return render_choices(result.ambiguous_candidates)
        return f"Sorry, I couldn't update your participation: {result.error or 'unknown error'}"
