"""Channel classification and community personality lookup."""

from typing import NamedTuple, Protocol

from .config import AssistantSettings
from .logging_config import get_logger
from .models import ChannelType, CommunityConfig
from .storage import IStorage

logger = get_logger(__name__)


class Personality(NamedTuple):
    persona: str
    sass_level: int


DEFAULT_PERSONALITY = Personality(persona="tavernkeeper", sass_level=3)


class IChannelConfigProvider(Protocol):
    """Read-only view of community settings. Lookups never raise."""

    async def get_channel_type(
        self, channel_id: str, community_id: str | None
    ) -> ChannelType:
        ...

    async def get_personality(self, community_id: str | None) -> Personality:
        ...


class ChannelConfigProvider:
    """Reads community settings from Storage, falling back to process settings."""

    def __init__(self, storage: IStorage, settings: AssistantSettings | None = None):
        self._storage = storage
        self._settings = settings or AssistantSettings()

    async def _config(self, community_id: str | None) -> CommunityConfig | None:
        if not community_id:
            return None
        return await self._storage.get_community_config(community_id)

    async def get_channel_type(
        self, channel_id: str, community_id: str | None
    ) -> ChannelType:
        try:
            config = await self._config(community_id)
        except Exception as e:
            logger.error(f"Failed to load config for community {community_id}: {e}")
            return ChannelType.OTHER

        mapping = (
            (ChannelType.SCHEDULE, "schedule_channel_id"),
            (ChannelType.EVENTS, "events_channel_id"),
            (ChannelType.REGULAR, "regular_channel_id"),
        )
        for channel_type, attr in mapping:
            configured = getattr(config, attr, None) if config else None
            if configured is None:
                configured = getattr(self._settings, attr)
            if configured and configured == channel_id:
                return channel_type
        return ChannelType.OTHER

    async def get_personality(self, community_id: str | None) -> Personality:
        try:
            config = await self._config(community_id)
        except Exception as e:
            logger.error(f"Failed to load personality for community {community_id}: {e}")
            return DEFAULT_PERSONALITY

        if config is None:
            return DEFAULT_PERSONALITY
        return Personality(persona=config.persona, sass_level=config.sass_level)
