"""Capability handler interfaces."""

from typing import Any, Protocol

from ..models import CapabilityRequest, CapabilityResult, IntentType


class ICapability(Protocol):
    """One specialised request processor.

    Detection lives in the matching detector under ``pvpal.intents``; a
    capability only processes requests routed to it and renders the result.
    """

    intent: IntentType

    async def process(self, request: CapabilityRequest) -> CapabilityResult:
        ...

    async def render_response(self, result: CapabilityResult) -> str:
        ...


class IDisambiguatingCapability(ICapability, Protocol):
    """A capability that can ask the user to pick one of several targets."""

    async def resolve_selection(
        self,
        request: CapabilityRequest,
        index: int,
        candidates: list[dict[str, Any]],
        action: dict[str, Any] | None,
    ) -> CapabilityResult:
        """Apply ``action`` to ``candidates[index - 1]``."""
        ...


def render_choices(candidates: list[dict[str, Any]]) -> str:
    """Numbered list of sessions for a disambiguation prompt."""
    lines = ["I found more than one session that could match. Which one did you mean?"]
    for number, candidate in enumerate(candidates, start=1):
        lines.append(
            f"{number}. {candidate.get('game_mode', '?')} on "
            f"{candidate.get('date', '?')} at {candidate.get('time', '?')}"
        )
    lines.append("Reply with the number.")
    return "\n".join(lines)
