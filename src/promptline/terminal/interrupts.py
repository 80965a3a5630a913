"""Background byte dispatcher that turns control bytes into interrupt events."""

from __future__ import annotations

import logging as py_logging
import queue
import threading
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass
from typing import Protocol, Union

from promptline.errors import PromptlineError, StreamError
from promptline.terminal import ansi
from promptline.terminal.models import INTERRUPT_BYTES, InterruptEvent, InterruptKind

logger = py_logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 256
SUBSCRIBER_QUEUE_SIZE = 32
POLL_INTERVAL_SECONDS = 0.1

InterruptHandler = Callable[[InterruptEvent], None]


class ByteSource(Protocol):
    def read(self, size: int = 1, *, timeout: float | None = None) -> bytes: ...


class TerminalControl(Protocol):
    def restore(self) -> None: ...

    def write(self, data: str | bytes) -> None: ...


@dataclass(frozen=True)
class StreamFailure:
    error: PromptlineError


# Items carried by the editor channel: one editable byte, an interrupt event,
# or the failure that stopped the router.
EditorItem = Union[int, InterruptEvent, StreamFailure]


class InterruptRouter:
    """Sole reader of the session input.

    Bytes are inspected before the editor sees them: interrupt tokens become
    events and are never forwarded, every other byte is forwarded in arrival
    order through a bounded queue. A full queue blocks the router, so no byte
    is dropped.
    """

    def __init__(
        self,
        source: ByteSource,
        *,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        poll_interval: float = POLL_INTERVAL_SECONDS,
    ) -> None:
        self._source = source
        self._poll_interval = poll_interval
        self._channel: queue.Queue[EditorItem] = queue.Queue(maxsize=queue_size)
        self._subscribers: list[queue.Queue[InterruptEvent]] = []
        self._subscribers_lock = threading.Lock()
        self._handlers: dict[InterruptKind, InterruptHandler] = {}
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._sequence = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> InterruptRouter:
        if self._thread is not None:
            return self
        self._thread = threading.Thread(target=self._run, name="promptline-interrupts", daemon=True)
        self._thread.start()
        logger.debug("interrupt-router started")
        return self

    def stop(self, timeout: float | None = 1.0) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        logger.debug("interrupt-router stopped")

    # == Handlers

    def on(self, kind: InterruptKind, handler: InterruptHandler) -> None:
        """Set the active handler for kind, replacing any previous one."""
        self._handlers[kind] = handler

    def off(self, kind: InterruptKind) -> None:
        self._handlers.pop(kind, None)

    def handler_for(self, kind: InterruptKind) -> InterruptHandler | None:
        return self._handlers.get(kind)

    def exit_on(self, kind: InterruptKind, code: int, terminal: TerminalControl | None = None) -> None:
        """Exit the process with code on kind; terminal defaults to the byte source."""
        self.on(kind, exit_handler(terminal or self._source, code))  # type: ignore[arg-type]

    def subscribe(self, maxsize: int = SUBSCRIBER_QUEUE_SIZE) -> queue.Queue[InterruptEvent]:
        """Queue that receives every later event.

        A full queue drops its oldest event; callers drain it or unsubscribe.
        """
        subscription: queue.Queue[InterruptEvent] = queue.Queue(maxsize=maxsize)
        with self._subscribers_lock:
            self._subscribers.append(subscription)
        return subscription

    def unsubscribe(self, subscription: queue.Queue[InterruptEvent]) -> None:
        with self._subscribers_lock:
            if subscription in self._subscribers:
                self._subscribers.remove(subscription)

    # == Consumer side

    def next_item(self, timeout: float | None = None) -> EditorItem:
        """Block until the next byte, event or failure reaches the editor."""
        return self._channel.get(timeout=timeout)

    def dispatch(self, event: InterruptEvent) -> None:
        """Run the handler for event on the caller's thread."""
        handler = self._handlers.get(event.kind)
        if handler is not None:
            handler(event)

    # == Producer side

    def feed(self, data: bytes) -> None:
        for byte in data:
            kind = INTERRUPT_BYTES.get(byte)
            if kind is None:
                self._put(byte)
                continue
            self._sequence += 1
            event = InterruptEvent(kind=kind, sequence=self._sequence)
            logger.debug("interrupt-event kind=%s sequence=%s", kind.value, event.sequence)
            self._publish(event)
            self._put(event)

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                data = self._source.read(1024, timeout=self._poll_interval)
            except PromptlineError as exc:
                logger.debug("interrupt-router input failed: %s", exc.message)
                self._put(StreamFailure(exc))
                return
            except Exception as exc:
                logger.exception("Unhandled exception in interrupt router")
                self._put(StreamFailure(StreamError("Terminal input failed.", hint=str(exc))))
                return
            if data:
                self.feed(data)

    def _put(self, item: EditorItem) -> None:
        while True:
            try:
                self._channel.put(item, timeout=self._poll_interval)
                return
            except queue.Full:
                if self._stop.is_set():
                    return

    def _publish(self, event: InterruptEvent) -> None:
        with self._subscribers_lock:
            subscribers = list(self._subscribers)
        for subscription in subscribers:
            while True:
                try:
                    subscription.put_nowait(event)
                    break
                except queue.Full:
                    with suppress(queue.Empty):
                        dropped = subscription.get_nowait()
                        logger.debug("interrupt-subscriber full, dropped sequence=%s", dropped.sequence)


def exit_handler(terminal: TerminalControl, code: int) -> InterruptHandler:
    """Restore the terminal, erase the current line and exit with code."""

    def _handle(event: InterruptEvent) -> None:
        logger.debug("interrupt-exit kind=%s code=%s", event.kind.value, code)
        try:
            terminal.restore()
        finally:
            terminal.write(ansi.DEL_LINE_CR)
        raise SystemExit(code)

    return _handle
