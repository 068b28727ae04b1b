"""Keyword detectors, one per capability.

Each detector wraps a pure predicate over the message text and turns a hit
into an ``IntentCandidate`` whose confidence depends on the channel the
message came from. Detectors hold no state and can be refined independently
of the classifier.
"""

import re
from dataclasses import asdict, dataclass, field
from typing import Iterable, Protocol

from ..models import CandidatePriority, ChannelType, IntentCandidate, IntentType

DAY_NAMES = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
)

_TIME_PATTERN = re.compile(r"\b\d{1,2}:\d{2}\b|\b\d{1,2} ?(am|pm)\b|\b(am|pm)\b")


def normalize_text(text: str) -> str:
    return text.lower().replace("’", "'")


def mentions(text: str, term: str) -> bool:
    # Short tokens ("cc", "3s", "set") only count as whole words.
    if len(term) <= 3:
        return re.search(rf"(?<!\w){re.escape(term)}(?!\w)", text) is not None
    return term in text


def mentions_any(text: str, terms: Iterable[str]) -> bool:
    return any(mentions(text, term) for term in terms)


# ── Event creation ───────────────────────────────────────────────────

CREATION_KEYWORDS = (
    "schedule", "create", "set up", "organize", "plan", "let's do",
    "let's run", "can we do", "should we do", "when can we",
)
GAME_MODE_KEYWORDS = ("2v2", "2s", "3v3", "3s", "threes", "twos", "rbg", "rbgs", "rated")


def is_event_creation_request(content: str) -> bool:
    """Creation wording plus a game mode, time or day reference."""
    text = normalize_text(content)
    if not mentions_any(text, CREATION_KEYWORDS):
        return False

    has_time = (
        "tonight" in text
        or "tomorrow" in text
        or _TIME_PATTERN.search(text) is not None
    )
    return (
        mentions_any(text, GAME_MODE_KEYWORDS)
        or has_time
        or mentions_any(text, DAY_NAMES)
    )


# ── Configuration ────────────────────────────────────────────────────

CONFIG_DIRECT_PHRASES = (
    "update your persona", "change your persona", "switch your persona",
    "set your persona", "update persona", "change persona",
    "update your config", "change your config", "update config",
    "change config", "update settings", "change settings", "update configuration",
)
CONFIG_VERBS = (
    "change", "set", "update", "configure", "setup", "modify",
    "switch", "make you", "turn", "adjust", "settings", "config",
)
CONFIG_SETTINGS = (
    "persona", "personality", "sass", "reminder", "channel",
    "tone", "style", "voice", "attitude", "format", "date",
    "level", "gender", "masculine", "feminine", "neutral",
    "tavernkeeper", "bard", "cleric", "warlock", "strategist",
    "dungeonmaster", "unhinged",
)


def is_configuration_request(content: str) -> bool:
    text = normalize_text(content)
    if any(phrase in text for phrase in CONFIG_DIRECT_PHRASES):
        return True
    return mentions_any(text, CONFIG_VERBS) and mentions_any(text, CONFIG_SETTINGS)


# ── Participation ────────────────────────────────────────────────────

PARTICIPATION_KEYWORDS = (
    "count me in", "i'll join", "i'll be there", "i can come",
    "sign me up", "put me down", "i'll play", "i can play",
    "add me", "remove me", "count me out", "can't make it",
    "won't be able", "i'll miss", "i'll be late", "won't be on time",
    "tentative", "maybe", "i might", "backup", "reserve",
    "i'll come", "coming", "will come", "i'll attend", "attending",
    "i'm in", "will attend",
)
ROLE_KEYWORDS = ("tank", "healer", "heal", "dps", "damage")
CLASS_KEYWORDS = (
    "warrior", "paladin", "hunter", "rogue", "priest", "shaman", "mage",
    "warlock", "druid", "death knight", "monk", "demon hunter", "evoker",
    "lock", "drood", "dk", "dh", "pally", "sp",
)
EVENT_REFERENCE_KEYWORDS = (
    "tonight", "tomorrow", "today", "session", "event", "next",
    "rbg", "2s", "3s", "2v2", "3v3",
) + DAY_NAMES


def is_participation_request(content: str) -> bool:
    """Attendance wording plus a role, class or event reference."""
    text = normalize_text(content)
    if not mentions_any(text, PARTICIPATION_KEYWORDS):
        return False
    return (
        mentions_any(text, EVENT_REFERENCE_KEYWORDS)
        or mentions_any(text, ROLE_KEYWORDS)
        or mentions_any(text, CLASS_KEYWORDS)
    )


# ── Schedule info ────────────────────────────────────────────────────

SCHEDULE_QUERY_KEYWORDS = (
    "when", "next", "upcoming", "schedule", "planned", "happening",
    "what time", "what day", "calendar", "events", "any games",
    "sessions", "playing", "running",
)
PARTICIPANT_QUERY_KEYWORDS = (
    "who", "signed up", "going", "attending", "coming", "players",
    "participants", "roster", "attendance", "join", "whose",
)


@dataclass
class ScheduleQuery:
    """What a schedule question is asking about."""

    is_schedule_query: bool = False
    is_participant_query: bool = False
    game_mode: str | None = None
    time_reference: str | None = None

    @property
    def matched(self) -> bool:
        return self.is_schedule_query or self.is_participant_query


def parse_game_mode(text: str) -> str | None:
    text = normalize_text(text)
    if "2v2" in text or mentions(text, "2s"):
        return "2v2"
    if "3v3" in text or mentions(text, "3s"):
        return "3v3"
    if "rbg" in text or "rated bg" in text:
        return "RBGs"
    return None


def parse_time_reference(text: str) -> str | None:
    text = normalize_text(text)
    if "tonight" in text or "today" in text:
        return "today"
    if "tomorrow" in text:
        return "tomorrow"
    for day in DAY_NAMES:
        if day in text:
            return day
    if "next" in text:
        return "next"
    return None


def schedule_info_query(content: str) -> ScheduleQuery:
    text = normalize_text(content)
    return ScheduleQuery(
        is_schedule_query=mentions_any(text, SCHEDULE_QUERY_KEYWORDS),
        is_participant_query=mentions_any(text, PARTICIPANT_QUERY_KEYWORDS),
        game_mode=parse_game_mode(text),
        time_reference=parse_time_reference(text),
    )


# ── Banter ───────────────────────────────────────────────────────────

RATING_REFERENCES = (
    "1200", "1400", "1600", "1800", "2000", "2100", "2200", "2400", "rival",
    "duelist", "gladiator", "challenger", "hardstuck", "hard stuck", "boosted",
    "carry", "carried", "cr", "mmr", "rating", "r1", "rank 1", "rank one",
)
TRASH_TALK = (
    "noob", "trash", "garbage", "bad", "scrub", "suck", "git gud", "get good",
    "l2p", "learn to play", "1v1", "duel me", "fight me", "throw down",
    "goldshire", "big bot", "loser", "stupid", "idiot", "dumb", "moron",
    "useless", "worthless", "pathetic",
)
CHALLENGE_PHRASES = (
    "1v1", "duel", "fight me", "challenge", "goldshire", "throw down", "throw hands",
)
DIRECT_INSULTS = (
    "you suck", "you're trash", "you're bad", "you're a loser", "you're stupid",
    "you're dumb", "you're worthless", "you're useless", "you're a bot",
    "you're garbage", "you're an idiot", "you're a moron", "trash bot", "shut up",
)
PVP_TERMS = (
    "cc", "stun", "interrupt", "los", "line of sight", "trinket", "cooldown", "cd",
    "burst", "arena", "rbg", "battleground", "bg", "pillar", "kite", "peel",
    "hardcast", "global", "gcd", "meta", "comp", "lineup", "dampening",
)
HELP_KEYWORDS = (
    "help", "how do i", "question", "advice", "suggestion", "recommend",
    "explain", "what is", "how to", "need help", "how does",
)
MOTIVATION_KEYWORDS = (
    "discouraged", "struggling", "hard time", "stuck", "can't seem to",
    "nervous", "anxious", "never done", "beginner", "new to", "first time",
)
BANTER_PATTERNS = (
    "lol", "lmao", "rofl", "haha", "lmfao", "xd", "\U0001f602", "\U0001f923",
    "amirite", "am i right", "just kidding", "jk", "imagine",
    "get rekt", "owned", "pwned", "smack", "talk smack",
)
WOW_CLASSES = (
    "warrior", "paladin", "hunter", "rogue", "priest", "shaman",
    "mage", "warlock", "druid", "death knight", "monk", "demon hunter", "evoker",
)


@dataclass
class BanterQuery:
    """Tone analysis of a casual message."""

    has_rating_reference: bool = False
    has_trash_talk: bool = False
    has_pvp_terms: bool = False
    has_challenge: bool = False
    has_direct_insult: bool = False
    is_help_request: bool = False
    is_motivation_request: bool = False
    has_banter_indicators: bool = False
    bot_trash_talk: bool = False
    mentioned_classes: list[str] = field(default_factory=list)
    tone: str = "neutral"
    intensity: float = 1.0

    @property
    def is_rating_query(self) -> bool:
        return self.has_rating_reference

    @property
    def is_class_meta_query(self) -> bool:
        return bool(self.mentioned_classes) and self.has_pvp_terms

    @property
    def is_casual_chat(self) -> bool:
        return self.has_banter_indicators or self.has_pvp_terms

    @property
    def matched(self) -> bool:
        return self.is_rating_query or self.is_class_meta_query or self.is_casual_chat


def banter_query(content: str) -> BanterQuery:
    text = normalize_text(content)
    query = BanterQuery(
        has_rating_reference=mentions_any(text, RATING_REFERENCES),
        has_trash_talk=mentions_any(text, TRASH_TALK),
        has_pvp_terms=mentions_any(text, PVP_TERMS),
        has_challenge=mentions_any(text, CHALLENGE_PHRASES),
        has_direct_insult=mentions_any(text, DIRECT_INSULTS),
        is_help_request=mentions_any(text, HELP_KEYWORDS),
        is_motivation_request=mentions_any(text, MOTIVATION_KEYWORDS),
        has_banter_indicators=mentions_any(text, BANTER_PATTERNS),
        mentioned_classes=[c for c in WOW_CLASSES if c in text],
    )
    query.bot_trash_talk = query.has_direct_insult or (
        mentions(text, "bot")
        and (query.has_trash_talk or query.has_rating_reference or "smack" in text)
    )

    # First match wins
    if query.has_direct_insult:
        query.tone = "direct_insult"
    elif query.is_help_request and not (query.has_trash_talk or query.has_challenge):
        query.tone = "help"
    elif query.is_motivation_request and not (query.has_trash_talk or query.has_challenge):
        query.tone = "motivation"
    elif query.bot_trash_talk:
        query.tone = "trash_talk_bot"
    elif query.has_challenge:
        query.tone = "challenge"
    elif query.has_trash_talk or query.has_rating_reference:
        query.tone = "trash_talk"
    elif query.has_banter_indicators:
        query.tone = "casual_banter"
    elif query.has_pvp_terms:
        query.tone = "pvp_discussion"

    weights = (
        (query.has_direct_insult, 3.0),
        (query.bot_trash_talk, 2.0),
        (query.has_challenge, 1.5),
        (query.has_trash_talk, 1.0),
        (query.has_rating_reference, 1.0),
        (query.has_banter_indicators, 0.5),
    )
    score = sum(weight for flag, weight in weights if flag)
    query.intensity = min(10.0, max(1.0, score * 2))
    return query


# ── Detector interface ───────────────────────────────────────────────


class IDetector(Protocol):
    """Turns a message into a scored candidate for one capability."""

    intent: IntentType
    priority: CandidatePriority

    def detect(self, text: str, channel_type: ChannelType) -> IntentCandidate | None:
        ...


def _by_channel(channel_type: ChannelType, schedule: float, other: float) -> float:
    return schedule if channel_type == ChannelType.SCHEDULE else other


class EventCreationDetector:
    intent = IntentType.EVENT_CREATION
    priority = CandidatePriority.EVENT_CREATION

    def detect(self, text: str, channel_type: ChannelType) -> IntentCandidate | None:
        if not is_event_creation_request(text):
            return None
        return IntentCandidate(
            type=self.intent,
            confidence=_by_channel(channel_type, 0.95, 0.87),
            priority=self.priority,
        )


class ConfigurationDetector:
    intent = IntentType.CONFIGURATION
    priority = CandidatePriority.CONFIGURATION

    def detect(self, text: str, channel_type: ChannelType) -> IntentCandidate | None:
        if not is_configuration_request(text):
            return None
        # Same confidence in every channel
        return IntentCandidate(type=self.intent, confidence=0.93, priority=self.priority)


class ParticipationDetector:
    intent = IntentType.PARTICIPATION
    priority = CandidatePriority.PARTICIPATION

    def detect(self, text: str, channel_type: ChannelType) -> IntentCandidate | None:
        if not is_participation_request(text):
            return None
        return IntentCandidate(
            type=self.intent,
            confidence=_by_channel(channel_type, 0.94, 0.85),
            priority=self.priority,
        )


class ScheduleInfoDetector:
    intent = IntentType.SCHEDULE_INFO
    priority = CandidatePriority.SCHEDULE_INFO

    def detect(self, text: str, channel_type: ChannelType) -> IntentCandidate | None:
        query = schedule_info_query(text)
        if not query.matched:
            return None
        return IntentCandidate(
            type=self.intent,
            confidence=_by_channel(channel_type, 0.92, 0.8),
            priority=self.priority,
            details=asdict(query),
        )


class BanterDetector:
    intent = IntentType.BANTER
    priority = CandidatePriority.BANTER

    def detect(self, text: str, channel_type: ChannelType) -> IntentCandidate | None:
        query = banter_query(text)
        if not query.matched:
            return None
        # Anything that reads as casual chat stays low, even a rating brag
        base = 0.6 if query.is_casual_chat else 0.8
        # Banter belongs in the regular channel; damp it everywhere else
        confidence = base if channel_type == ChannelType.REGULAR else round(base - 0.2, 2)
        return IntentCandidate(
            type=self.intent,
            confidence=confidence,
            priority=self.priority,
            details=asdict(query),
        )


def default_detectors() -> list[IDetector]:
    return [
        EventCreationDetector(),
        ConfigurationDetector(),
        ParticipationDetector(),
        ScheduleInfoDetector(),
        BanterDetector(),
    ]
