# Attachment classification: turns a platform-native media descriptor into a
# MessageAttachment.  Descriptors are duck-typed on the attribute names the
# Telegram Bot API uses (file_id, file_size, mime_type, file_name), which
# python-telegram-bot objects expose directly.
#
# Everything here is a pure function of its input.

from collections.abc import Sequence
from enum import Enum
from typing import Any

from services.message import AttachmentType, MessageAttachment


class MediaKind(Enum):
    PHOTO = "photo"
    DOCUMENT = "document"
    VOICE = "voice"
    AUDIO = "audio"
    VIDEO = "video"


PHOTO_MIME = "image/jpeg"
DOCUMENT_MIME = "application/octet-stream"
DOCUMENT_NAME = "document"
VOICE_MIME = "audio/ogg"
AUDIO_MIME = "audio/mpeg"
VIDEO_MIME = "video/mp4"


def select_largest(variants: Sequence[Any] | None) -> Any | None:
    """Pick the highest-resolution variant.

    Platforms deliver photo sizes in ascending order, so the last entry wins.
    """
    if not variants:
        return None
    return variants[-1]


def detect_content_type(mime: str) -> AttachmentType:
    """Map a MIME type to the coarse attachment type it belongs to."""
    if mime.startswith("image/"):
        return AttachmentType.IMAGE
    if mime.startswith("audio/"):
        return AttachmentType.AUDIO
    if mime.startswith("video/"):
        return AttachmentType.VIDEO
    if mime.startswith("text/"):
        return AttachmentType.TEXT
    return AttachmentType.FILE


def classify(kind: MediaKind, descriptor: Any) -> MessageAttachment | None:
    """Build a normalized attachment for *descriptor*, or ``None`` if it is empty.

    For ``MediaKind.PHOTO`` the descriptor is the sequence of size variants;
    for every other kind it is a single media object.
    """
    match kind:
        case MediaKind.PHOTO:
            largest = select_largest(descriptor)
            if largest is None:
                return None
            return MessageAttachment(
                type=AttachmentType.IMAGE,
                mime_type=PHOTO_MIME,
                filename=f"photo_{largest.file_id}.jpg",
                size=getattr(largest, "file_size", None),
            )
        case MediaKind.DOCUMENT:
            if descriptor is None:
                return None
            return MessageAttachment(
                type=AttachmentType.FILE,
                mime_type=getattr(descriptor, "mime_type", None) or DOCUMENT_MIME,
                filename=getattr(descriptor, "file_name", None) or DOCUMENT_NAME,
                size=getattr(descriptor, "file_size", None),
            )
        case MediaKind.VOICE:
            if descriptor is None:
                return None
            return MessageAttachment(
                type=AttachmentType.AUDIO,
                mime_type=getattr(descriptor, "mime_type", None) or VOICE_MIME,
                size=getattr(descriptor, "file_size", None),
            )
        case MediaKind.AUDIO:
            if descriptor is None:
                return None
            return MessageAttachment(
                type=AttachmentType.AUDIO,
                mime_type=getattr(descriptor, "mime_type", None) or AUDIO_MIME,
                filename=getattr(descriptor, "file_name", None),
                size=getattr(descriptor, "file_size", None),
            )
        case MediaKind.VIDEO:
            if descriptor is None:
                return None
            return MessageAttachment(
                type=AttachmentType.VIDEO,
                mime_type=getattr(descriptor, "mime_type", None) or VIDEO_MIME,
                filename=getattr(descriptor, "file_name", None),
                size=getattr(descriptor, "file_size", None),
            )
