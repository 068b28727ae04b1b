"""Capability request/result models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .dialogue import ChannelType, HistoryEntry
from .messages import InboundMessage


class Outcome(str, Enum):
    """How a capability invocation ended."""

    SUCCESS = "success"
    INCOMPLETE = "incomplete"
    AMBIGUOUS = "ambiguous"
    FAILED = "failed"


@dataclass
class CapabilityRequest:
    """Everything a capability handler needs to process one turn."""

    content: str
    message: InboundMessage
    channel_type: ChannelType
    seed_data: dict[str, Any] = field(default_factory=dict)
    details: dict[str, Any] | None = None
    history: list[HistoryEntry] = field(default_factory=list)
    # Newest turn only; content holds the whole flow when a flow continues
    latest: str = ""

    @property
    def corrections(self) -> str:
        """Text of the newest turn when it differs from content, else ''."""
        return self.latest if self.latest != self.content else ""


@dataclass
class CapabilityResult:
    """Result returned by a capability handler."""

    success: bool
    data: dict[str, Any] = field(default_factory=dict)
    missing_fields: list[str] = field(default_factory=list)
    ambiguous_candidates: list[dict[str, Any]] = field(default_factory=list)
    action: dict[str, Any] | None = None  # original request details kept for disambiguation
    error: str | None = None

    @property
    def outcome(self) -> Outcome:
        if self.success:
            return Outcome.SUCCESS
        if self.ambiguous_candidates:
            return Outcome.AMBIGUOUS
        if self.missing_fields:
            return Outcome.INCOMPLETE
        return Outcome.FAILED

    @classmethod
    def failure(cls, error: str) -> "CapabilityResult":
        return cls(success=False, error=error)
