"""Schedule info capability: upcoming sessions and who is coming."""

from collections import Counter
from dataclasses import asdict

from ..intents.detectors import schedule_info_query
from ..logging_config import get_logger
from ..models import CapabilityRequest, CapabilityResult, IntentType, Outcome
from ..storage import IStorage

logger = get_logger(__name__)

MAX_LISTED_SESSIONS = 10


class ScheduleInfoCapability:
    """Answers schedule and roster questions from stored sessions."""

    intent = IntentType.SCHEDULE_INFO

    def __init__(self, storage: IStorage):
        self._storage = storage

    async def process(self, request: CapabilityRequest) -> CapabilityResult:
        community_id = request.message.community_id
        if not community_id:
            return CapabilityResult.failure("Schedule lookups only work inside a server.")

        # Continuation turns carry no detector details
        query = request.details or asdict(schedule_info_query(request.content))
        time_reference = query.get("time_reference")

        sessions = await self._storage.find_sessions(
            community_id,
            game_mode=query.get("game_mode"),
            date=time_reference if time_reference != "next" else None,
            limit=MAX_LISTED_SESSIONS,
        )
        if time_reference == "next":
            sessions = sessions[:1]

        listed = []
        for session in sessions:
            participants = await self._storage.list_participants(session.session_id)
            statuses = Counter(p.status for p in participants)
            listed.append(
                {
                    **session.summary(),
                    "signed_up": statuses.get("join", 0),
                    "late": statuses.get("late", 0),
                    "tentative": statuses.get("tentative", 0),
                    "players": [
                        p.user_id for p in participants if p.status in ("join", "late")
                    ],
                }
            )

        logger.debug(f"Schedule query {query} matched {len(listed)} sessions")
        return CapabilityResult(
            success=True,
            data={
                "sessions": listed,
                "participant_query": bool(query.get("is_participant_query")),
                "game_mode": query.get("game_mode"),
            },
        )

    async def render_response(self, result: CapabilityResult) -> str:
        if result.outcome != Outcome.SUCCESS:
            return f"Sorry, I couldn't look up the schedule: {result.error or 'unknown error'}"

        sessions = result.data["sessions"]
        if not sessions:
            mode = f"{result.data['game_mode']} " if result.data.get("game_mode") else ""
            return f"There are no upcoming {mode}sessions on the calendar. Want me to schedule one?"

        lines = ["Here's what's on the calendar:"]
        for session in sessions:
            counts = [f"{session['signed_up']} signed up"]
            counts += [f"{session[k]} {k}" for k in ("late", "tentative") if session[k]]
            line = (
                f"- {session['game_mode']} on {session['date']} at {session['time']}"
                f" ({', '.join(counts)})"
            )
            if result.data["participant_query"] and session["players"]:
                line += ": " + ", ".join(f"<@{p}>" for p in session["players"])
            lines.append(line)
        return "\n".join(lines)
