"""Conversion between native platform events and the normalized message model.

Inbound: ``normalize_inbound`` turns one native event of a known kind into an
``InboundMessage``.  Native events are duck-typed on the Telegram Bot API
``Message`` shape (``chat.id``, ``text``, ``caption``, ``photo``, ``date``,
``reply_to_message``), which python-telegram-bot exposes directly.

Outbound: ``plan_outbound`` turns an ``OutboundMessage`` into the ordered list
of platform send primitives a driver must issue.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from services.attachments import MediaKind, classify
from services.ids import gen_message_id
from services.message import (
    AttachmentType,
    ChannelType,
    ChannelUser,
    InboundMessage,
    MessageAttachment,
    OutboundMessage,
)


class EventKind(Enum):
    TEXT = "text"
    PHOTO = "photo"
    DOCUMENT = "document"
    VOICE = "voice"
    AUDIO = "audio"
    VIDEO = "video"

    @property
    def media_kind(self) -> MediaKind | None:
        if self is EventKind.TEXT:
            return None
        return MediaKind(self.value)


def to_millis(date: datetime | int | float) -> int:
    """Convert a platform timestamp (datetime or epoch seconds) to epoch milliseconds."""
    if isinstance(date, datetime):
        return int(date.timestamp() * 1000)
    return int(date * 1000)


def _reply_to_id(event: Any) -> str | None:
    ref = getattr(event, "reply_to_message", None)
    if ref is None:
        return None
    return str(ref.message_id)


def normalize_inbound(
    kind: EventKind,
    event: Any,
    *,
    channel_type: ChannelType,
    user: ChannelUser,
) -> InboundMessage:
    caption = getattr(event, "caption", None) or ""

    match kind:
        case EventKind.TEXT:
            content = getattr(event, "text", None) or ""
            descriptor = None
        case EventKind.VOICE:
            content = ""
            descriptor = getattr(event, "voice", None)
        case EventKind.PHOTO | EventKind.DOCUMENT | EventKind.AUDIO | EventKind.VIDEO:
            content = caption
            descriptor = getattr(event, kind.value, None)

    attachments: list[MessageAttachment] = []
    if kind.media_kind is not None:
        att = classify(kind.media_kind, descriptor)
        if att is not None:
            attachments.append(att)

    return InboundMessage(
        id=gen_message_id(),
        channel_type=channel_type,
        channel_id=str(event.chat.id),
        user=user,
        content=content,
        attachments=attachments,
        reply_to_id=_reply_to_id(event),
        timestamp=to_millis(event.date),
        raw=event,
    )


# ---------------------------------------------------------------------------
# Outbound
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SendText:
    text: str
    reply_to_id: str | None = None


@dataclass(frozen=True)
class SendPhoto:
    source: bytes | str


@dataclass(frozen=True)
class SendDocument:
    source: bytes | str
    filename: str


SendCall = SendText | SendPhoto | SendDocument


def split_message(content: str, max_length: int) -> list[str]:
    """Split *content* into chunks of at most *max_length* characters.

    Prefers breaking at a newline, then at a space, as long as the break
    point lies in the second half of the window; otherwise cuts hard.
    """
    if max_length < 1:
        raise ValueError(f"max_length must be positive, got {max_length}")
    if len(content) <= max_length:
        return [content]

    chunks: list[str] = []
    remaining = content
    while remaining:
        if len(remaining) <= max_length:
            chunks.append(remaining)
            break

        split_at = remaining.rfind("\n", 0, max_length + 1)
        if split_at == -1 or split_at < max_length * 0.5:
            split_at = remaining.rfind(" ", 0, max_length + 1)
        if split_at == -1 or split_at < max_length * 0.5:
            split_at = max_length

        chunks.append(remaining[:split_at])
        remaining = remaining[split_at:].lstrip()

    return chunks


def plan_outbound(message: OutboundMessage, max_text_length: int | None = None) -> list[SendCall]:
    """Return the platform calls needed to deliver *message*, in order.

    Text goes first, then each attachment in sequence.  Attachments with no
    usable source (or non-images with no filename) are skipped silently.
    """
    calls: list[SendCall] = []

    if message.content:
        chunks = split_message(message.content, max_text_length) if max_text_length is not None else [message.content]
        for i, chunk in enumerate(chunks):
            calls.append(SendText(chunk, message.reply_to_id if i == 0 else None))

    for att in message.attachments:
        source = att.source
        if not source:
            continue
        if att.type == AttachmentType.IMAGE:
            calls.append(SendPhoto(source))
        elif att.filename:
            calls.append(SendDocument(source, att.filename))

    return calls
