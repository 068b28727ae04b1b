"""Heuristic for spotting follow-up messages."""

from collections.abc import Sequence

from ..models import HistoryEntry

SHORT_MESSAGE_WORDS = 8

CONTINUATION_MARKERS = (
    "yes", "no", "yeah", "nope", "ok", "okay", "sure", "thanks", "got it",
    "what about", "also", "and", "but", "however", "actually", "wait",
    "hmm", "oh", "right", "exactly", "true", "fair", "probably",
)


def is_continuation(content: str, history: Sequence[HistoryEntry]) -> bool:
    """Whether ``content`` reads like a reply within an ongoing conversation."""
    if not history:
        return False

    if len(content.split()) < SHORT_MESSAGE_WORDS:
        return True

    if "?" in content:
        return True

    lowered = content.lower()
    return any(
        lowered == marker or lowered.startswith(marker + " ")
        for marker in CONTINUATION_MARKERS
    )
