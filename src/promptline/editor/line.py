"""Single-line editor driven by raw terminal bytes."""

from __future__ import annotations

import codecs
import logging as py_logging
from enum import Enum
from typing import Protocol

from promptline.editor.gapbuffer import DEFAULT_CAPACITY, INITIAL_LENGTH, GapBuffer
from promptline.errors import CapacityExceeded, ReadAborted
from promptline.terminal import ansi
from promptline.terminal.interrupts import EditorItem, StreamFailure
from promptline.terminal.models import InterruptEvent, InterruptKind

logger = py_logging.getLogger(__name__)

DEFAULT_PREFIX_ERROR = "  [!] "
_MAX_ESCAPE_LENGTH = 16
_BELL = "\a"
_ABORT_ECHO = {
    InterruptKind.INTERRUPT: "^C",
    InterruptKind.END_OF_TRANSMISSION: "^D",
}


class EditorState(str, Enum):
    IDLE = "idle"
    EDITING = "editing"
    CONFIRMED = "confirmed"
    ABORTED = "aborted"
    FAILED = "failed"


class Writer(Protocol):
    def write(self, data: str | bytes) -> None: ...


class InputChannel(Protocol):
    def next_item(self, timeout: float | None = None) -> EditorItem: ...

    def dispatch(self, event: InterruptEvent) -> None: ...


class LineEditor:
    """Reads one line at a time into a fresh gap buffer.

    Bytes arrive already filtered by the interrupt router. Interrupt events
    arrive in-band on the same channel; their handler runs on this thread
    and, when it returns, the read is aborted with ``ReadAborted``.
    """

    def __init__(
        self,
        terminal: Writer,
        channel: InputChannel,
        *,
        prefix_error: str = DEFAULT_PREFIX_ERROR,
        capacity: int = DEFAULT_CAPACITY,
    ) -> None:
        self._terminal = terminal
        self._channel = channel
        self.prefix_error = prefix_error
        self._capacity = capacity
        self.state = EditorState.IDLE
        self._prompt = ""
        self._extra_chars = 0
        self._buffer: GapBuffer | None = None
        self._escape: list[int] | None = None
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="ignore")

    @property
    def buffer(self) -> GapBuffer | None:
        return self._buffer

    @property
    def cursor_column(self) -> int:
        """Visible column of the cursor; styling bytes take no width."""
        before = self._buffer.before_cursor() if self._buffer is not None else ""
        return ansi.display_width(self._prompt) - self._extra_chars + ansi.display_width(before)

    def read_line(self, prompt: str, *, seed: str = "", extra_chars: int = 0) -> str:
        """Edit one line after prompt and return it once Enter is pressed.

        extra_chars counts prompt characters that occupy no column beyond SGR
        styling, such as OSC title sequences.
        """
        self._prompt = prompt
        self._extra_chars = extra_chars
        buffer = GapBuffer(seed, length=min(INITIAL_LENGTH, self._capacity), capacity=self._capacity)
        self._buffer = buffer
        self._escape = None
        self._decoder.reset()
        self.state = EditorState.EDITING
        self._repaint(buffer)

        while True:
            item = self._channel.next_item()
            if isinstance(item, InterruptEvent):
                self._abort(item)
            if isinstance(item, StreamFailure):
                self.state = EditorState.FAILED
                self._buffer = None
                raise item.error
            line = self._handle_byte(buffer, item)
            if line is not None:
                self.state = EditorState.CONFIRMED
                self._terminal.write(ansi.CRLF)
                return line

    # == Output helpers used by the validation loop

    def write(self, text: str) -> None:
        self._terminal.write(text)

    def newline(self) -> None:
        self._terminal.write(ansi.CRLF)

    def show_error(self, message: str) -> None:
        """Print message on the line below the prompt and go back up."""
        self._terminal.write(f"{ansi.DEL_LINE_CR}{self.prefix_error}{message}{ansi.CURSOR_UP}")

    def clear_error(self) -> None:
        self._terminal.write(ansi.DEL_LINE_CR)

    # == Input handling

    def _abort(self, event: InterruptEvent) -> None:
        self.state = EditorState.ABORTED
        self._buffer = None
        logger.debug("line-aborted event=%s", event.kind.value)
        self._channel.dispatch(event)
        self._terminal.write(_ABORT_ECHO.get(event.kind, "") + ansi.CRLF)
        raise ReadAborted(event)

    def _handle_byte(self, buffer: GapBuffer, byte: int) -> str | None:
        if self._escape is not None:
            self._handle_escape(buffer, self._escape, byte)
            return None
        if byte == ansi.ESC:
            self._escape = []
            return None
        if byte == ansi.ENTER:
            return buffer.text()
        if byte in (ansi.DELETE, ansi.BACKSPACE):
            if buffer.delete_backward():
                self._repaint(buffer)
            return None
        if byte == ansi.CTRL_A:
            if buffer.move_home():
                self._repaint(buffer)
            return None
        if byte == ansi.CTRL_E:
            if buffer.move_end():
                self._repaint(buffer)
            return None
        if byte < 0x20:
            return None

        inserted = False
        for ch in self._decoder.decode(bytes((byte,))):
            if not ch.isprintable():
                continue
            try:
                buffer.insert(ch)
            except CapacityExceeded:
                self._terminal.write(_BELL)
                break
            inserted = True
        if inserted:
            self._repaint(buffer)
        return None

    def _handle_escape(self, buffer: GapBuffer, sequence: list[int], byte: int) -> None:
        sequence.append(byte)

        if len(sequence) == 1:
            if byte in (ord("["), ord("O")):
                return
            self._escape = None
            if byte == ansi.ESC:
                self._escape = []
            elif byte == ord("b"):
                self._move(buffer, buffer.word_backward())
            elif byte == ord("f"):
                self._move(buffer, buffer.word_forward())
            return

        if 0x40 <= byte <= 0x7E:
            self._escape = None
            self._apply_sequence(buffer, bytes(sequence[1:]).decode("ascii", errors="ignore"))
        elif len(sequence) > _MAX_ESCAPE_LENGTH:
            self._escape = None

    def _apply_sequence(self, buffer: GapBuffer, code: str) -> None:
        if code in ("A", "B"):
            # No history: up/down do nothing.
            return
        if code == "C":
            self._move(buffer, int(buffer.move_forward()))
        elif code == "D":
            self._move(buffer, int(buffer.move_backward()))
        elif code in ("1;5C", "5C"):
            self._move(buffer, buffer.word_forward())
        elif code in ("1;5D", "5D"):
            self._move(buffer, buffer.word_backward())
        elif code in ("H", "1~", "7~"):
            self._move(buffer, buffer.move_home())
        elif code in ("F", "4~", "8~"):
            self._move(buffer, buffer.move_end())
        elif code == "3~":
            if buffer.delete_forward():
                self._repaint(buffer)
        elif code == "2~":
            logger.debug("write-mode %s", buffer.toggle_mode().value)

    def _move(self, buffer: GapBuffer, moved: int) -> None:
        if moved:
            self._repaint(buffer)

    def _repaint(self, buffer: GapBuffer) -> None:
        back = ansi.display_width(buffer.after_cursor())
        self._terminal.write(
            f"{ansi.DEL_LINE_CR}{self._prompt}{buffer.text()}{ansi.CURSOR_BACKWARD * back}"
        )
