"""Subscriptions of expectations to the streams they observe.

A stream is either an observable (anything with an Rx-style `subscribe()`
method returning a disposable) or an asynchronous iterable. In both cases
the subscriber sees a sequence of values followed by exactly one terminal
event, `Finished` or `Failed`.
"""

import asyncio
from collections import abc
from dataclasses import dataclass
import logging
import threading
from typing import Any, AsyncIterable, Callable, Optional, Union
import weakref

from rx.disposable import Disposable
from typing_extensions import Protocol, runtime_checkable


logger = logging.getLogger(__name__)


class DisposableLike(Protocol):
    """A handle to an open subscription."""

    def dispose(self) -> None:
        """Release the subscription."""


@runtime_checkable
class Observable(Protocol):
    """A push-based stream with an Rx-style subscription method."""

    def subscribe(
        self,
        on_next: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        on_completed: Optional[Callable[[], None]] = None,
    ) -> DisposableLike:
        """Subscribe to the stream's values and terminal event."""


Stream = Union[Observable, AsyncIterable]


@dataclass(frozen=True)
class Finished:
    """The stream completed successfully."""

    def __str__(self) -> str:
        return "Finished"


@dataclass(frozen=True)
class Failed:
    """The stream terminated with an error."""

    error: BaseException

    def __str__(self) -> str:
        return f"Failed({self.error!r})"


Terminal = Union[Finished, Failed]


class StreamSubscription:
    """Owns a single subscription to a stream.

    Values are passed to `on_value` and the terminal event to `on_terminal`.
    Both callbacks must be bound methods; they are held through weak references
    so that an open subscription never keeps its owner alive. When the owner is
    collected, any further stream events are ignored.

    The subscription handle is released once: either when the stream
    terminates or when `dispose()` is called, whichever comes first.
    """

    _on_value: weakref.WeakMethod
    _on_terminal: weakref.WeakMethod
    _loop: asyncio.AbstractEventLoop
    _handle: Optional[DisposableLike]
    _lock: threading.Lock

    terminated: bool
    """`True` iff the terminal event has been received."""

    disposed: bool
    """`True` iff the subscription handle has been released."""

    def __init__(
        self,
        on_value: Callable[[Any], None],
        on_terminal: Callable[[Terminal], None],
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self._on_value = weakref.WeakMethod(on_value)
        self._on_terminal = weakref.WeakMethod(on_terminal)
        self._loop = loop
        self._handle = None
        self._lock = threading.Lock()
        self.terminated = False
        self.disposed = False

    def open(self, stream: Stream) -> None:
        """Subscribe to `stream`.

        The stream may emit, and even terminate, before this method returns.
        """
        if isinstance(stream, Observable):
            handle = stream.subscribe(
                on_next=self._receive_value,
                on_error=self._receive_error,
                on_completed=self._receive_completed,
            )
        elif isinstance(stream, abc.AsyncIterable):
            task = self._loop.create_task(self._consume(stream))
            handle = Disposable(lambda: self._cancel_task(task))
        else:
            raise TypeError(
                f"Cannot subscribe to {stream!r}: expected an observable "
                "or an asynchronous iterable"
            )

        with self._lock:
            release_now = self.terminated or self.disposed
            if not release_now:
                self._handle = handle

        if release_now:
            # The stream terminated synchronously during `subscribe()`
            # or the subscription was disposed in the meantime.
            self._release(handle)

    def dispose(self) -> None:
        """Release the subscription handle and ignore further events."""
        with self._lock:
            self.disposed = True
            handle, self._handle = self._handle, None
        if handle is not None:
            self._release(handle)

    def _receive_value(self, value: Any) -> None:
        if self.terminated or self.disposed:
            return
        callback = self._on_value()
        if callback is not None:
            callback(value)

    def _receive_error(self, error: BaseException) -> None:
        self._receive_terminal(Failed(error))

    def _receive_completed(self) -> None:
        self._receive_terminal(Finished())

    def _receive_terminal(self, terminal: Terminal) -> None:
        with self._lock:
            if self.terminated or self.disposed:
                return
            self.terminated = True
            handle, self._handle = self._handle, None

        try:
            callback = self._on_terminal()
            if callback is not None:
                callback(terminal)
        finally:
            if handle is not None:
                self._release(handle)

    async def _consume(self, stream: AsyncIterable) -> None:
        try:
            async for value in stream:
                self._receive_value(value)
        except asyncio.CancelledError:
            raise
        except Exception as error:
            self._receive_error(error)
        else:
            self._receive_completed()

    def _cancel_task(self, task: asyncio.Task) -> None:
        if task.done() or self._loop.is_closed():
            return
        if self._loop.is_running() and asyncio.current_task(self._loop) is task:
            # Released from within the consuming task after the terminal event
            return
        self._loop.call_soon_threadsafe(task.cancel)

    @staticmethod
    def _release(handle: DisposableLike) -> None:
        logger.debug("Releasing subscription handle %r", handle)
        handle.dispose()
