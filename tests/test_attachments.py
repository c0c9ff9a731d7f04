from types import SimpleNamespace

import pytest

from services.attachments import MediaKind, classify, detect_content_type, select_largest
from services.message import AttachmentType


class TestPhoto:

    def test_selects_last_variant(self, photo_variants):
        att = classify(MediaKind.PHOTO, photo_variants)

        assert att.type == AttachmentType.IMAGE
        assert att.mime_type == "image/jpeg"
        assert att.filename == "photo_large.jpg"
        assert att.size == 100_000

    def test_last_wins_even_if_not_biggest(self):
        # Ordering is the platform's contract; the classifier does not re-sort
        variants = [SimpleNamespace(file_id="a", file_size=50), SimpleNamespace(file_id="b", file_size=10)]
        assert select_largest(variants).file_id == "b"

    @pytest.mark.parametrize("variants", [None, [], ()])
    def test_empty_returns_none(self, variants):
        assert classify(MediaKind.PHOTO, variants) is None


class TestDocument:

    def test_uses_platform_fields(self):
        doc = SimpleNamespace(file_id="d1", mime_type="application/pdf", file_name="report.pdf", file_size=2048)
        att = classify(MediaKind.DOCUMENT, doc)

        assert att.type == AttachmentType.FILE
        assert att.mime_type == "application/pdf"
        assert att.filename == "report.pdf"
        assert att.size == 2048

    def test_fallbacks(self):
        att = classify(MediaKind.DOCUMENT, SimpleNamespace(file_id="d2", mime_type=None, file_name=None))

        assert att.mime_type == "application/octet-stream"
        assert att.filename == "document"
        assert att.size is None

    def test_missing(self):
        assert classify(MediaKind.DOCUMENT, None) is None


class TestAudioKinds:

    def test_voice_defaults_to_ogg_without_filename(self):
        att = classify(MediaKind.VOICE, SimpleNamespace(file_id="v", mime_type=None, file_size=900))

        assert att.type == AttachmentType.AUDIO
        assert att.mime_type == "audio/ogg"
        assert att.filename is None
        assert att.size == 900

    def test_audio_keeps_file_name(self):
        att = classify(MediaKind.AUDIO, SimpleNamespace(file_id="a", mime_type=None, file_name="song.mp3"))
        assert (att.type, att.mime_type, att.filename) == (AttachmentType.AUDIO, "audio/mpeg", "song.mp3")

    def test_video(self):
        att = classify(MediaKind.VIDEO, SimpleNamespace(file_id="x", mime_type="video/webm", file_size=5))
        assert (att.type, att.mime_type, att.filename) == (AttachmentType.VIDEO, "video/webm", None)


def test_classification_is_idempotent(photo_variants):
    assert classify(MediaKind.PHOTO, photo_variants) == classify(MediaKind.PHOTO, photo_variants)


@pytest.mark.parametrize("mime, expected", [
    ("image/png", AttachmentType.IMAGE),
    ("audio/ogg", AttachmentType.AUDIO),
    ("video/mp4", AttachmentType.VIDEO),
    ("text/plain", AttachmentType.TEXT),
    ("application/zip", AttachmentType.FILE),
])
def test_detect_content_type(mime, expected):
    assert detect_content_type(mime) == expected
