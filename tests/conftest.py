"""Shared fixtures: a recording fake platform client, a driver wired to it, and
native-event factories shaped like Telegram Bot API messages."""

import os
import tempfile

# Keep test runs from writing log files into the working tree
os.environ.setdefault("GATEWAY_LOG_DIR", tempfile.mkdtemp(prefix="gateway-logs-"))

from types import SimpleNamespace

import pytest

from drivers import BaseDriver
from services.config_schema import ChannelAdapterConfig
from services.hub import Hub, HubEvent
from services.message import ChannelType


class FakeClient:
    """In-memory stand-in for a platform SDK wrapper."""

    def __init__(self):
        self.handlers = {}
        self.error_handler = None
        self.calls: list[tuple] = []
        self.typing: list[str] = []
        self.started = False
        self.stopped = False
        self.start_error: Exception | None = None
        self.typing_error: Exception | None = None
        self.fail_at: int | None = None  # 1-based send attempt that raises
        self._attempts = 0

    def on_event(self, kind, handler):
        self.handlers[kind] = handler

    def on_error(self, handler):
        self.error_handler = handler

    async def start(self):
        if self.start_error is not None:
            raise self.start_error
        self.started = True

    async def stop(self):
        self.stopped = True

    def _record(self, call: tuple):
        self._attempts += 1
        if self._attempts == self.fail_at:
            raise RuntimeError(f"{call[0]} rejected by platform")
        self.calls.append(call)

    async def send_text(self, channel_id, text, reply_to_id=None):
        self._record(("text", channel_id, text, reply_to_id))

    async def send_photo(self, channel_id, source):
        self._record(("photo", channel_id, source))

    async def send_document(self, channel_id, source, filename):
        self._record(("document", channel_id, source, filename))

    async def send_typing(self, channel_id):
        self.typing.append(channel_id)
        if self.typing_error is not None:
            raise self.typing_error

    async def deliver(self, kind, event):
        await self.handlers[kind](event)


class FakeDriver(BaseDriver[ChannelAdapterConfig]):
    channel_type = ChannelType.TELEGRAM

    def __init__(self, instance_id, config, hub, client):
        super().__init__(instance_id, config, hub)
        self.client = client
        self.clients_created = 0

    def create_client(self):
        self.clients_created += 1
        return self.client


class Recorder:
    """Subscribes to every hub event and keeps what it saw."""

    def __init__(self, hub: Hub):
        self.messages = []
        self.errors = []
        self.connected = []
        self.disconnected = []
        hub.subscribe(HubEvent.MESSAGE, lambda inst, msg: self.messages.append((inst, msg)))
        hub.subscribe(HubEvent.ERROR, lambda inst, err: self.errors.append((inst, err)))
        hub.subscribe(HubEvent.CONNECTED, lambda inst: self.connected.append(inst))
        hub.subscribe(HubEvent.DISCONNECTED, lambda inst: self.disconnected.append(inst))


@pytest.fixture
def hub():
    return Hub()


@pytest.fixture
def recorder(hub):
    return Recorder(hub)


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def make_driver(hub, client):
    def factory(**config):
        return FakeDriver("tg-main", ChannelAdapterConfig(**config), hub, client)
    return factory


@pytest.fixture
def make_sender():
    def factory(user_id=111, first_name="Ada", last_name=None, username="ada", language_code="en"):
        return SimpleNamespace(
            id=user_id,
            first_name=first_name,
            last_name=last_name,
            username=username,
            language_code=language_code,
        )
    return factory


@pytest.fixture
def make_event(make_sender):
    def factory(text=None, *, sender=..., chat_id=-100123, date=1_700_000_000,
                reply_to=None, caption=None, **media):
        fields = dict(photo=(), document=None, voice=None, audio=None, video=None)
        fields.update(media)
        return SimpleNamespace(
            message_id=7,
            from_user=make_sender() if sender is ... else sender,
            chat=SimpleNamespace(id=chat_id),
            text=text,
            caption=caption,
            date=date,
            reply_to_message=SimpleNamespace(message_id=reply_to) if reply_to is not None else None,
            **fields,
        )
    return factory


def photo_size(file_id, size):
    return SimpleNamespace(file_id=file_id, file_unique_id=f"u-{file_id}", file_size=size)


@pytest.fixture
def photo_variants():
    return [photo_size("small", 1_000), photo_size("medium", 10_000), photo_size("large", 100_000)]
