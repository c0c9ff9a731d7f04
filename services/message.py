from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ChannelType(StrEnum):
    TELEGRAM = "telegram"
    DISCORD = "discord"
    WHATSAPP = "whatsapp"
    WEBCHAT = "webchat"
    EXTENSION = "extension"


class AttachmentType(StrEnum):
    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    FILE = "file"
    EMBED = "embed"


@dataclass
class ChannelUser:
    """Sender identity, namespaced by channel so ids never collide across platforms."""
    id: str                  # "<channel_type>:<native id>"
    display_name: str
    channel_type: ChannelType
    channel_specific_id: str # platform-native user ID
    metadata: dict[str, str | None] = field(default_factory=dict)


@dataclass
class MessageAttachment:
    """A media attachment carried alongside an inbound or outbound message."""
    type: AttachmentType
    mime_type: str
    filename: str | None = None
    size: int | None = None            # bytes; None = unknown
    url: str | None = None
    data: bytes | str | None = None    # pre-fetched payload or platform file handle

    @property
    def source(self) -> bytes | str | None:
        return self.url or self.data

    @property
    def is_sendable(self) -> bool:
        return bool(self.source)


@dataclass
class InboundMessage:
    """Platform-agnostic message handed to the host."""
    id: str
    channel_type: ChannelType
    channel_id: str          # conversation / chat identifier
    user: ChannelUser
    content: str             # may be empty for media-only events
    timestamp: int           # milliseconds since epoch
    attachments: list[MessageAttachment] = field(default_factory=list)
    reply_to_id: str | None = None
    session_id: str = ""     # assigned by the host, never by an adapter
    raw: Any = None          # native platform payload, passed through untouched


@dataclass
class OutboundMessage:
    """Message the host wants delivered to a channel."""
    channel_id: str
    content: str | None = None
    attachments: list[MessageAttachment] = field(default_factory=list)
    reply_to_id: str | None = None
