import asyncio
import sys
import traceback
from collections.abc import Coroutine
from typing import Any

import services.logger as log

# Initialize logger
l = log.get_logger()


# ---------------------------------------------------------------------------
# Exception taxonomy
# ---------------------------------------------------------------------------

class AdapterError(Exception):
    """Base class for errors raised by channel adapters."""


class NotConnectedError(AdapterError):
    """``send`` was called while the adapter has no live platform client."""


class PlatformError(AdapterError):
    """Wraps any error surfaced by a platform SDK."""

    def __init__(self, message: str, original: BaseException | None = None):
        super().__init__(message)
        self.original = original

    @classmethod
    def wrap(cls, exc: BaseException, context: str = "") -> "PlatformError":
        if isinstance(exc, PlatformError):
            return exc
        prefix = f"{context}: " if context else ""
        return cls(f"{prefix}{exc}", original=exc)


# ---------------------------------------------------------------------------
# Global hook
# ---------------------------------------------------------------------------

def _handle_uncaught_exceptions(exc_type, exc_value, exc_traceback):
    """Global exception handler for uncaught exceptions."""
    if issubclass(exc_type, KeyboardInterrupt):
        # Call default handler for keyboard interrupt (e.g. Ctrl+C)
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return

    l.critical(
        "Unhandled exception caught:\n"
        + ''.join(traceback.format_exception(exc_type, exc_value, exc_traceback))
    )

# Install global exception hook
sys.excepthook = _handle_uncaught_exceptions


def raise_and_log(message: str, exception_type: type = Exception):
    """
    Log an error and then raise the specified exception.

    :param message: Error message to log and include in the exception.
    :param exception_type: Type of exception to raise (default: Exception).
    """
    l.error(f"Raising exception: {message}")
    raise exception_type(message)


# ---------------------------------------------------------------------------
# Best-effort operations
# ---------------------------------------------------------------------------

# Strong references to in-flight fire-and-forget tasks; the event loop only
# keeps weak ones.
_background: set[asyncio.Task] = set()


def _consume_result(task: asyncio.Task, label: str) -> None:
    _background.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        l.debug(f"Best-effort '{label}' failed (ignored): {exc}")


def fire_and_forget(coro: Coroutine[Any, Any, Any], label: str) -> asyncio.Task:
    """Schedule *coro* without awaiting it.

    Failures are logged at debug level and never surfaced or retried.
    Must be called from inside a running event loop.
    """
    task = asyncio.ensure_future(coro)
    _background.add(task)
    task.add_done_callback(lambda t: _consume_result(t, label))
    return task
