"""Message-related data models."""

from dataclasses import dataclass

from .dialogue import ConversationKey


@dataclass
class InboundMessage:
    """A chat message as delivered by the messaging adapter.

    ``addressed`` is set by the adapter when the message mentions the bot,
    replies to one of its messages, or arrives as a direct message.
    """

    author_id: str
    channel_id: str
    content: str
    community_id: str | None = None
    replied_to_message_id: str | None = None
    addressed: bool = False
    is_direct: bool = False
    author_name: str | None = None

    @property
    def key(self) -> ConversationKey:
        return ConversationKey(self.author_id, self.channel_id)
