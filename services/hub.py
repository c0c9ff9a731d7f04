import inspect
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

import services.logger as log
from services.message import InboundMessage, OutboundMessage

l = log.get_logger()

# Config keys whose values are treated as credentials and must never appear in
# outgoing messages.  Matched as substrings against lower-cased key names.
_SENSITIVE_KEY_PATTERNS = ("token", "secret", "password", "webhook_url")


def _collect_sensitive(obj, found: set[str]) -> None:
    """Recursively extract sensitive string values from the config dict."""
    if isinstance(obj, dict):
        for k, v in obj.items():
            if isinstance(v, str) and v and any(p in k.lower() for p in _SENSITIVE_KEY_PATTERNS):
                found.add(v)
            else:
                _collect_sensitive(v, found)
    elif isinstance(obj, list):
        for item in obj:
            _collect_sensitive(item, found)


class HubEvent(Enum):
    MESSAGE = "message"            # handler(instance_id, InboundMessage)
    ERROR = "error"                # handler(instance_id, Exception)
    CONNECTED = "connected"        # handler(instance_id)
    DISCONNECTED = "disconnected"  # handler(instance_id)


Handler = Callable[..., Awaitable[None] | None]
SendFunc = Callable[[OutboundMessage], Awaitable[None]]


class Hub:
    """
    Meeting point between channel drivers and the host.

    The host subscribes handlers per ``HubEvent``; drivers emit into the hub
    and register their send function so the host can deliver outbound
    messages by instance id.  Handlers may be plain functions or coroutines.
    """

    def __init__(self):
        self._handlers: dict[HubEvent, list[Handler]] = {event: [] for event in HubEvent}
        self._senders: dict[str, SendFunc] = {}
        self._sensitive: frozenset[str] = frozenset()

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def load_sensitive_values(self, config: dict):
        found: set[str] = set()
        _collect_sensitive(config, found)
        self._sensitive = frozenset(found)
        log.register_sensitive(self._sensitive)
        l.info(f"Loaded {len(self._sensitive)} sensitive value(s) for leak detection")

    def register_sender(self, instance_id: str, send_func: SendFunc):
        self._senders[instance_id] = send_func
        l.debug(f"Registered sender for instance: {instance_id}")

    def subscribe(self, event: HubEvent, handler: Handler) -> None:
        self._handlers[event].append(handler)

    def unsubscribe(self, event: HubEvent, handler: Handler) -> None:
        try:
            self._handlers[event].remove(handler)
        except ValueError:
            l.debug(f"unsubscribe: handler not registered for {event.value}")

    # ------------------------------------------------------------------
    # Driver → host
    # ------------------------------------------------------------------

    async def _emit(self, event: HubEvent, *args: Any) -> None:
        for handler in list(self._handlers[event]):
            result = handler(*args)
            if inspect.isawaitable(result):
                await result

    async def emit_message(self, instance_id: str, message: InboundMessage):
        await self._emit(HubEvent.MESSAGE, instance_id, message)

    async def emit_error(self, instance_id: str, error: Exception):
        await self._emit(HubEvent.ERROR, instance_id, error)

    async def emit_connected(self, instance_id: str):
        await self._emit(HubEvent.CONNECTED, instance_id)

    async def emit_disconnected(self, instance_id: str):
        await self._emit(HubEvent.DISCONNECTED, instance_id)

    # ------------------------------------------------------------------
    # Host → driver
    # ------------------------------------------------------------------

    def _is_sensitive(self, text: str) -> bool:
        return bool(self._sensitive) and any(s in text for s in self._sensitive)

    async def send(self, instance_id: str, message: OutboundMessage) -> bool:
        """Deliver *message* through the driver registered as *instance_id*.

        Returns ``False`` when the message is blocked for leaking a configured
        secret.  Driver errors (``NotConnectedError``, ``PlatformError``)
        propagate to the caller.
        """
        sender = self._senders.get(instance_id)
        if sender is None:
            raise LookupError(f"No sender registered for instance '{instance_id}'")

        if message.content and self._is_sensitive(message.content):
            l.warning(
                f"Message to '{instance_id}' blocked: text contains a sensitive "
                f"value from config (token/secret/webhook). Possible credential leak."
            )
            return False

        await sender(message)
        return True


# Shared singleton used by all drivers
hub = Hub()
