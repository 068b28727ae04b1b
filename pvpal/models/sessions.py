"""Scheduling data models backing the capability handlers."""

from dataclasses import dataclass, field

GAME_MODES = ("2v2", "3v3", "RBGs")
PARTICIPATION_STATUSES = ("join", "leave", "late", "tentative", "backup")
PERSONAS = (
    "tavernkeeper",
    "bard",
    "cleric",
    "warlock",
    "strategist",
    "dungeonmaster",
    "unhinged",
)


@dataclass
class Participant:
    """A user's attendance record for a session."""

    session_id: str
    user_id: str
    status: str  # one of PARTICIPATION_STATUSES
    role: str | None = None


@dataclass
class Session:
    """A scheduled PvP session."""

    session_id: str
    community_id: str
    game_mode: str
    date: str
    time: str
    host_id: str
    notes: str = ""
    tier: str | None = None  # "main" / "alt", RBGs only
    participants: list[Participant] = field(default_factory=list)

    def summary(self) -> dict:
        return {
            "session_id": self.session_id,
            "game_mode": self.game_mode,
            "date": self.date,
            "time": self.time,
        }


@dataclass
class CommunityConfig:
    """Per-community settings: channel routing and personality."""

    community_id: str
    schedule_channel_id: str | None = None
    events_channel_id: str | None = None
    regular_channel_id: str | None = None
    persona: str = "tavernkeeper"
    sass_level: int = 3
