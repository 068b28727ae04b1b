"""Tracing and observability data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class TurnRecord:
    """One handled conversational turn, as written to the conversation log."""

    user_id: str
    channel_id: str
    message: str
    detected_intent: str
    confidence: float
    success: bool
    community_id: str | None = None
    channel_type: str | None = None
    response: str | None = None
    latency_ms: int | None = None
    error: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: int | None = None
