"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"
LOGS_DIR = PROJECT_ROOT / "logs"
DEFAULT_DB_PATH = DATA_DIR / "pvpal.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class AssistantSettings:
    """Tunables for the dialogue state machine and its collaborators."""

    model: str = "claude-3-5-sonnet-20241022"
    max_tokens: int = 800
    max_response_length: int = 1500
    enable_dms: bool = True
    bot_user_id: str | None = None

    # Dialogue state
    conversation_ttl: timedelta = timedelta(minutes=30)
    max_history_messages: int = 20
    retry_window: timedelta = timedelta(minutes=5)
    recent_activity_window: timedelta = timedelta(minutes=5)
    sweep_interval_seconds: float = 60.0

    # Confidence thresholds per channel classification
    schedule_channel_threshold: float = 0.5
    default_channel_threshold: float = 0.65

    # Fallback channel ids when a community has no stored configuration
    schedule_channel_id: str | None = None
    events_channel_id: str | None = None
    regular_channel_id: str | None = None

    @classmethod
    def from_env(cls) -> "AssistantSettings":
        """Build settings from environment variables, keeping defaults for unset ones."""
        return cls(
            model=os.getenv("MODEL_NAME", cls.model),
            max_tokens=int(os.getenv("MAX_TOKENS", str(cls.max_tokens))),
            max_response_length=int(
                os.getenv("MAX_RESPONSE_LENGTH", str(cls.max_response_length))
            ),
            enable_dms=_env_bool("ENABLE_DMS", cls.enable_dms),
            bot_user_id=os.getenv("BOT_USER_ID"),
            sweep_interval_seconds=float(
                os.getenv("SWEEP_INTERVAL_SECONDS", str(cls.sweep_interval_seconds))
            ),
            schedule_channel_id=os.getenv("SCHEDULE_CHANNEL_ID"),
            events_channel_id=os.getenv("EVENTS_CHANNEL_ID"),
            regular_channel_id=os.getenv("REGULAR_CHANNEL_ID"),
        )
