"""Banter capability: tone-aware casual replies."""

from dataclasses import asdict

from ..fallback import IFallbackResponder
from ..intents.detectors import banter_query
from ..models import CapabilityRequest, CapabilityResult, IntentType, Outcome
from ..prompts import SECTIONS, TONE_HINTS


class BanterCapability:
    """Routes banter to the fallback responder with a hint about the user's tone."""

    intent = IntentType.BANTER

    def __init__(self, responder: IFallbackResponder):
        self._responder = responder

    async def process(self, request: CapabilityRequest) -> CapabilityResult:
        query = request.details or asdict(banter_query(request.content))
        tone = query.get("tone", "neutral")

        hints = [SECTIONS["banter"]]
        if tone in TONE_HINTS:
            hints.append(TONE_HINTS[tone])
        if tone == "motivation":
            hints.append(SECTIONS["motivation"])
        elif tone == "help":
            hints.append(SECTIONS["helpful"])
        hints.append(f"Banter intensity: {query.get('intensity', 1.0)}/10.")

        reply = await self._responder.respond(
            request.content,
            request.channel_type,
            request.history,
            community_id=request.message.community_id,
            hint="\n".join(hints),
        )
        return CapabilityResult(success=True, data={"reply": reply, "tone": tone})

    async def render_response(self, result: CapabilityResult) -> str:
        if result.outcome == Outcome.SUCCESS:
            return result.data["reply"]
        return result.error or "..."
