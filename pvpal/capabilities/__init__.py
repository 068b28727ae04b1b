"""Capability handlers, one per actionable intent."""

from .banter import BanterCapability
from .base import ICapability, IDisambiguatingCapability, render_choices
from .configuration import ConfigurationCapability
from .event_creation import EventCreationCapability, normalize_time
from .participation import ParticipationCapability
from .schedule_info import ScheduleInfoCapability

__all__ = [
    "ICapability",
    "IDisambiguatingCapability",
    "render_choices",
    "BanterCapability",
    "ConfigurationCapability",
    "EventCreationCapability",
    "ParticipationCapability",
    "ScheduleInfoCapability",
    "normalize_time",
]
