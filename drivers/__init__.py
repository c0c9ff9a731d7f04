from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Generic, Protocol, TypeVar

import services.logger as log
from services.auth import Allowlist
from services.config_schema import ChannelAdapterConfig
from services.error import NotConnectedError, PlatformError, fire_and_forget, raise_and_log
from services.message import ChannelType, OutboundMessage
from services.normalize import EventKind, SendDocument, SendPhoto, SendText, normalize_inbound, plan_outbound
from services.users import map_user

if TYPE_CHECKING:
    from services.hub import Hub

T = TypeVar("T", bound=ChannelAdapterConfig)

l = log.get_logger()

EventHandler = Callable[[Any], Awaitable[None]]
ErrorHandler = Callable[[BaseException], Awaitable[None]]


class PlatformClient(Protocol):
    """Capability set a platform SDK wrapper must provide to a driver."""

    def on_event(self, kind: EventKind, handler: EventHandler) -> None: ...

    def on_error(self, handler: ErrorHandler) -> None: ...

    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    async def send_text(self, channel_id: str, text: str, reply_to_id: str | None = None) -> None: ...

    async def send_photo(self, channel_id: str, source: bytes | str) -> None: ...

    async def send_document(self, channel_id: str, source: bytes | str, filename: str) -> None: ...

    async def send_typing(self, channel_id: str) -> None: ...


class AdapterState(Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    CONNECTED = "connected"
    ERRORED = "errored"   # transient: only while error hooks run


class BaseDriver(ABC, Generic[T]):
    """Lifecycle controller shared by all platform drivers.

    Subclasses declare ``channel_type`` and ``supported_kinds`` and build the
    SDK wrapper in ``create_client``; everything else (allowlist, inbound
    normalization, outbound planning, state and hub notifications) lives here.

    All state is touched from the event loop thread only.
    """

    channel_type: ClassVar[ChannelType]
    supported_kinds: ClassVar[tuple[EventKind, ...]] = tuple(EventKind)
    max_text_length: int | None = None

    def __init__(self, instance_id: str, config: T, hub: "Hub"):
        self.instance_id = instance_id
        self.config: T = config
        self.hub = hub
        self.allowlist = Allowlist(config.allowed_users)
        self._client: PlatformClient | None = None
        self._connected = False
        self._state = AdapterState.STOPPED
        hub.register_sender(instance_id, self.send)

    @property
    def label(self) -> str:
        return f"{self.channel_type} [{self.instance_id}]"

    @property
    def state(self) -> AdapterState:
        return self._state

    def is_connected(self) -> bool:
        return self._connected

    @abstractmethod
    def create_client(self) -> PlatformClient:
        """Construct the platform SDK wrapper for this instance."""

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self):
        if not self.config.enabled:
            l.info(f"{self.label} disabled in config")
            return
        if self._client is not None:
            l.warning(f"{self.label} already started")
            return

        l.info(f"Starting {self.label}…")
        self._state = AdapterState.STARTING

        client = self.create_client()
        for kind in self.supported_kinds:
            client.on_event(kind, self._make_handler(kind))
        client.on_error(self._on_platform_error)
        self._client = client

        try:
            await client.start()
        except Exception as e:
            self._client = None
            self._state = AdapterState.STOPPED
            err = PlatformError.wrap(e, f"{self.label} failed to start")
            await self._report_error(err)
            if err is e:
                raise
            raise err from e

        self._connected = True
        self._state = AdapterState.CONNECTED
        l.info(f"{self.label} receiving started")
        await self.hub.emit_connected(self.instance_id)

    async def stop(self):
        client = self._client
        if client is None:
            return

        self._client = None
        self._connected = False
        self._state = AdapterState.STOPPED
        try:
            await client.stop()
        except Exception as e:
            l.error(f"{self.label} error while stopping: {e}")
        l.info(f"{self.label} stopped")

        if self.config.notify_on_stop:
            try:
                await self.hub.emit_disconnected(self.instance_id)
            except Exception as e:
                l.error(f"{self.label} disconnect handler raised: {e}")

    # ------------------------------------------------------------------
    # Receive
    # ------------------------------------------------------------------

    def _make_handler(self, kind: EventKind) -> EventHandler:
        async def handler(event: Any) -> None:
            await self._handle(kind, event)
        return handler

    async def _handle(self, kind: EventKind, event: Any) -> None:
        # Never let an exception escape into the SDK's dispatch loop
        try:
            user = map_user(self.channel_type, getattr(event, "from_user", None), self.allowlist)
            if user is None:
                return

            channel_id = str(event.chat.id)
            if self.config.typing_indicator and self._client is not None:
                fire_and_forget(self._client.send_typing(channel_id), f"{self.label} typing")

            inbound = normalize_inbound(kind, event, channel_type=self.channel_type, user=user)
            await self.hub.emit_message(self.instance_id, inbound)
        except Exception as e:
            l.error(f"{self.label} dropped {kind.value} event: {e}")

    async def _on_platform_error(self, error: BaseException) -> None:
        l.error(f"{self.label} platform error: {error}")
        await self._report_error(PlatformError.wrap(error, self.label))

    async def _report_error(self, error: PlatformError) -> None:
        previous = self._state
        self._state = AdapterState.ERRORED
        try:
            await self.hub.emit_error(self.instance_id, error)
        except Exception as e:
            l.error(f"{self.label} error handler raised: {e}")
        finally:
            self._state = previous

    # ------------------------------------------------------------------
    # Send
    # ------------------------------------------------------------------

    async def send(self, message: OutboundMessage):
        """Deliver *message*; text first, then attachments in order.

        Not atomic: if a later call fails, earlier ones stay delivered and the
        whole send fails with a single ``PlatformError``.
        """
        client = self._client
        if client is None:
            raise_and_log(f"{self.label} not initialized", NotConnectedError)

        channel_id = message.channel_id
        for call in plan_outbound(message, self.max_text_length):
            try:
                match call:
                    case SendText(text, reply_to_id):
                        await client.send_text(channel_id, text, reply_to_id)
                    case SendPhoto(source):
                        await client.send_photo(channel_id, source)
                    case SendDocument(source, filename):
                        await client.send_document(channel_id, source, filename)
            except PlatformError:
                raise
            except Exception as e:
                l.error(f"{self.label} send failed: {e}")
                raise PlatformError.wrap(e, f"{self.label} send failed") from e
