"""Raw-mode terminal session with guaranteed attribute restoration."""

from __future__ import annotations

import atexit
import logging as py_logging
import os
import select
import sys
from dataclasses import replace
from typing import IO, Protocol

from promptline.errors import StreamError, TerminalError
from promptline.terminal.models import TerminalMode, TerminalState

try:
    import termios
except ImportError:  # pragma: no cover - non-POSIX platforms
    termios = None  # type: ignore[assignment]

logger = py_logging.getLogger(__name__)


class TermiosApi(Protocol):
    def tcgetattr(self, fd: int) -> list: ...

    def tcsetattr(self, fd: int, when: int, attributes: list) -> None: ...


def _resolve_fd(stream: object) -> int | None:
    try:
        return int(stream.fileno())  # type: ignore[attr-defined]
    except (AttributeError, OSError, ValueError):
        return None


class TerminalSession:
    """Owns the terminal descriptors and their original/working attributes.

    The original snapshot is captured once when the session opens and is
    never changed. Every mode call derives a new working snapshot from the
    current one and applies it. ``restore`` reapplies the original snapshot;
    it is registered with ``atexit`` and may be called any number of times.
    """

    def __init__(
        self,
        input_stream: IO,
        output_stream: IO,
        *,
        input_fd: int,
        output_fd: int | None = None,
        termios_api: TermiosApi | None = None,
    ) -> None:
        if termios is None:
            raise TerminalError(
                "Terminal attributes are not supported on this platform.",
                hint="Run promptline on a POSIX terminal.",
            )
        self._api: TermiosApi = termios_api or termios
        self._input = input_stream
        self._output = getattr(output_stream, "buffer", output_stream)
        self._input_fd = input_fd
        self._output_fd = output_fd
        self._mode = TerminalMode.NONE

        try:
            attrs = self._api.tcgetattr(input_fd)
        except (termios.error, OSError) as exc:
            raise TerminalError(
                f"Failed to read terminal attributes for fd {input_fd}.",
                hint=str(exc) or "Attach the input stream to a terminal.",
            ) from exc

        self._original = TerminalState.from_attrs(attrs)
        self._working = self._original
        self._restored = True
        atexit.register(self.restore)
        logger.debug("terminal-open fd=%s", input_fd)

    @classmethod
    def open(
        cls,
        input_stream: IO | None = None,
        output_stream: IO | None = None,
        *,
        termios_api: TermiosApi | None = None,
    ) -> TerminalSession:
        input_stream = input_stream if input_stream is not None else sys.stdin
        output_stream = output_stream if output_stream is not None else sys.stdout
        input_fd = _resolve_fd(input_stream)
        if input_fd is None:
            raise StreamError(
                "Terminal input has no file descriptor.",
                hint="Pass a stream backed by a terminal device.",
            )
        return cls(
            input_stream,
            output_stream,
            input_fd=input_fd,
            output_fd=_resolve_fd(output_stream),
            termios_api=termios_api,
        )

    @property
    def fd(self) -> int:
        return self._input_fd

    @property
    def output_fd(self) -> int | None:
        return self._output_fd

    @property
    def mode(self) -> TerminalMode:
        return self._mode

    @property
    def restored(self) -> bool:
        return self._restored

    @property
    def original_state(self) -> TerminalState:
        return self._original

    @property
    def working_state(self) -> TerminalState:
        return self._working

    # == Modes

    def set_raw_mode(self) -> None:
        """Deliver every byte immediately, unechoed and unprocessed.

        Output gets CR LF for a new line and Enter arrives as CR.
        """
        state = self._working
        raw = replace(
            state,
            iflag=state.iflag
            & ~(
                termios.BRKINT
                | termios.IGNBRK
                | termios.ICRNL
                | termios.INLCR
                | termios.IGNCR
                | termios.ISTRIP
                | termios.IXON
                | termios.PARMRK
            ),
            oflag=state.oflag & ~termios.OPOST,
            lflag=state.lflag
            & ~(termios.ECHO | termios.ECHONL | termios.ICANON | termios.IEXTEN | termios.ISIG),
            cflag=(state.cflag & ~(termios.CSIZE | termios.PARENB)) | termios.CS8,
        )
        raw = raw.with_cc(termios.VMIN, 1).with_cc(termios.VTIME, 0)
        self._apply(raw, termios.TCSAFLUSH, "raw")
        self._mode |= TerminalMode.RAW

    def set_echo_mode(self, enabled: bool) -> None:
        state = self._working
        if enabled:
            lflag = state.lflag | termios.ECHO
        else:
            lflag = state.lflag & ~termios.ECHO
        self._apply(replace(state, lflag=lflag), termios.TCSANOW, "echo" if enabled else "no-echo")
        if enabled:
            self._mode |= TerminalMode.ECHO
        else:
            self._mode &= ~TerminalMode.ECHO

    def set_char_mode(self) -> None:
        state = replace(self._working, lflag=self._working.lflag & ~termios.ICANON)
        state = state.with_cc(termios.VTIME, 0).with_cc(termios.VMIN, 1)
        self._apply(state, termios.TCSANOW, "char")
        self._mode |= TerminalMode.CHAR

    def set_mode(self, state: TerminalState) -> None:
        self._apply(state, termios.TCSANOW, "other")
        self._mode |= TerminalMode.OTHER

    def restore(self) -> None:
        if self._restored:
            return
        self._set_attrs(self._original, termios.TCSANOW, "restore")
        self._working = self._original
        self._mode = TerminalMode.NONE
        self._restored = True

    def close(self) -> None:
        try:
            self.restore()
        finally:
            atexit.unregister(self.restore)

    def __enter__(self) -> TerminalSession:
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    # == I/O

    def read(self, size: int = 1, *, timeout: float | None = None) -> bytes:
        """Read up to size bytes; ``b""`` only when timeout expires first."""
        try:
            ready, _, _ = select.select([self._input_fd], [], [], timeout)
        except (OSError, ValueError) as exc:
            raise StreamError(
                "Failed to poll terminal input.",
                hint=str(exc) or "Verify the terminal is still attached.",
            ) from exc
        if not ready:
            return b""
        try:
            data = os.read(self._input_fd, size)
        except OSError as exc:
            raise StreamError(
                "Failed to read from terminal.",
                hint=str(exc) or "Verify the terminal is still attached.",
            ) from exc
        if not data:
            raise StreamError("Terminal input closed.", hint="The input stream reached end of file.")
        return data

    def write(self, data: str | bytes) -> None:
        payload = data.encode("utf-8") if isinstance(data, str) else data
        try:
            self._output.write(payload)
            self._output.flush()
        except (OSError, ValueError) as exc:
            raise StreamError(
                "Failed to write to terminal.",
                hint=str(exc) or "Verify the terminal is still attached.",
            ) from exc

    def get_size(self) -> tuple[int, int]:
        """Return (rows, columns) of the terminal window."""
        fd = self._output_fd if self._output_fd is not None else self._input_fd
        try:
            size = os.get_terminal_size(fd)
        except OSError as exc:
            raise TerminalError(
                "Failed to read terminal window size.",
                hint=str(exc) or "Attach the output stream to a terminal.",
            ) from exc
        return size.lines, size.columns

    def _apply(self, state: TerminalState, when: int, label: str) -> None:
        self._set_attrs(state, when, label)
        self._working = state
        self._restored = False

    def _set_attrs(self, state: TerminalState, when: int, label: str) -> None:
        try:
            self._api.tcsetattr(self._input_fd, when, state.to_attrs())
        except (termios.error, OSError) as exc:
            raise TerminalError(
                f"Failed to set terminal attributes ({label}).",
                hint=str(exc) or "The terminal may have been detached.",
            ) from exc
        logger.debug("terminal-mode fd=%s mode=%s", self._input_fd, label)
