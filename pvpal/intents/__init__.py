"""Intent detection module."""

from .classifier import IIntentClassifier, IntentClassifier
from .continuation import is_continuation
from .detectors import (
    BanterDetector,
    ConfigurationDetector,
    EventCreationDetector,
    IDetector,
    ParticipationDetector,
    ScheduleInfoDetector,
    default_detectors,
)

__all__ = [
    "IIntentClassifier",
    "IntentClassifier",
    "is_continuation",
    "IDetector",
    "BanterDetector",
    "ConfigurationDetector",
    "EventCreationDetector",
    "ParticipationDetector",
    "ScheduleInfoDetector",
    "default_detectors",
]
