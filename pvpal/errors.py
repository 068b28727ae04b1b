"""Exceptions raised across the assistant."""


class AssistantError(Exception):
    """Base class for assistant errors."""


class UpstreamUnavailableError(AssistantError, RuntimeError):
    """The language-model service is missing or failed."""


class CapabilityError(AssistantError):
    """A capability handler hit a hard failure for this turn."""

    def __init__(self, message: str, intent: str | None = None):
        super().__init__(message)
        self.intent = intent


class ExtractionError(CapabilityError):
    """Structured fields could not be extracted from the model output."""
