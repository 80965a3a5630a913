"""Gap buffer holding the editable text of one input line."""

from __future__ import annotations

from enum import Enum

from promptline.errors import CapacityExceeded

DEFAULT_CAPACITY = 4096
INITIAL_LENGTH = 64

_EMPTY = ""
_SPACE = " "


class WriteMode(str, Enum):
    INSERT = "insert"
    OVERWRITE = "overwrite"


class GapBuffer:
    """Code points split around a movable gap.

    ``buf[:gap_start]`` is the text before the cursor and
    ``buf[gap_end + 1:buf_end + 1]`` the text after it. The gap is the
    inclusive range ``[gap_start, gap_end]``; its last cell is never written,
    so the buffer is full when ``gap_start == gap_end``. The backing list
    starts at ``length`` cells and doubles on demand up to ``capacity``.
    """

    def __init__(
        self,
        initial: str = "",
        *,
        length: int = INITIAL_LENGTH,
        capacity: int = DEFAULT_CAPACITY,
    ) -> None:
        if length < 1 or capacity < length:
            raise ValueError(f"Invalid gap buffer size: length={length} capacity={capacity}")
        self.capacity = capacity
        self.mode = WriteMode.INSERT
        self._buf: list[str] = [_EMPTY] * length
        self.buf_end = length - 1
        self.gap_start = 0
        self.gap_end = self.buf_end
        self.size = 0
        if initial:
            self.insert_text(initial)

    @property
    def cursor(self) -> int:
        return self.gap_start

    def __len__(self) -> int:
        return self.size

    def __str__(self) -> str:
        return self.text()

    def __repr__(self) -> str:
        return (
            f"GapBuffer(cursor={self.cursor}, gap_start={self.gap_start}, "
            f"gap_end={self.gap_end}, buf_end={self.buf_end}, text={self.text()!r})"
        )

    # == Writing

    def insert(self, ch: str) -> None:
        if len(ch) != 1:
            raise ValueError(f"Expected a single code point, got {ch!r}")
        if self.mode == WriteMode.OVERWRITE:
            self.delete_forward()
        if self.gap_start == self.gap_end:
            self._grow()
        self._buf[self.gap_start] = ch
        self.gap_start += 1
        self.size += 1

    def insert_text(self, text: str) -> None:
        for ch in text:
            self.insert(ch)

    def delete_backward(self) -> bool:
        if self.gap_start == 0:
            return False
        self.gap_start -= 1
        self._buf[self.gap_start] = _EMPTY
        self.size -= 1
        return True

    def delete_forward(self) -> bool:
        if self.gap_end >= self.buf_end:
            return False
        self.gap_end += 1
        self._buf[self.gap_end] = _EMPTY
        self.size -= 1
        return True

    def toggle_mode(self) -> WriteMode:
        if self.mode == WriteMode.INSERT:
            self.mode = WriteMode.OVERWRITE
        else:
            self.mode = WriteMode.INSERT
        return self.mode

    # == Cursor motion

    def move_forward(self) -> bool:
        if self.gap_end >= self.buf_end:
            return False
        self.gap_end += 1
        self._buf[self.gap_start] = self._buf[self.gap_end]
        self._buf[self.gap_end] = _EMPTY
        self.gap_start += 1
        return True

    def move_backward(self) -> bool:
        if self.gap_start == 0:
            return False
        self.gap_start -= 1
        self._buf[self.gap_end] = self._buf[self.gap_start]
        self._buf[self.gap_start] = _EMPTY
        self.gap_end -= 1
        return True

    def move_home(self) -> int:
        moved = 0
        while self.move_backward():
            moved += 1
        return moved

    def move_end(self) -> int:
        moved = 0
        while self.move_forward():
            moved += 1
        return moved

    def word_forward(self) -> int:
        """Move past the rest of the current word and the spaces after it."""
        moved = 0
        while self._next_char() not in (_EMPTY, _SPACE):
            self.move_forward()
            moved += 1
        while self._next_char() == _SPACE:
            self.move_forward()
            moved += 1
        return moved

    def word_backward(self) -> int:
        """Move to the start of the previous word."""
        moved = 0
        while self._prev_char() == _SPACE:
            self.move_backward()
            moved += 1
        while self._prev_char() not in (_EMPTY, _SPACE):
            self.move_backward()
            moved += 1
        return moved

    # == Reading

    def before_cursor(self) -> str:
        return "".join(self._buf[: self.gap_start])

    def after_cursor(self) -> str:
        return "".join(self._buf[self.gap_end + 1 : self.buf_end + 1])

    def materialize(self) -> list[str]:
        return self._buf[: self.gap_start] + self._buf[self.gap_end + 1 : self.buf_end + 1]

    def text(self) -> str:
        return "".join(self.materialize())

    def _next_char(self) -> str:
        if self.gap_end >= self.buf_end:
            return _EMPTY
        return self._buf[self.gap_end + 1]

    def _prev_char(self) -> str:
        if self.gap_start == 0:
            return _EMPTY
        return self._buf[self.gap_start - 1]

    def _grow(self) -> None:
        old_length = self.buf_end + 1
        new_length = min(old_length * 2, self.capacity)
        if new_length <= old_length:
            raise CapacityExceeded(f"Line is limited to {self.capacity - 1} characters.")
        after = self._buf[self.gap_end + 1 : self.buf_end + 1]
        gap_cells = self.gap_end - self.gap_start + 1 + (new_length - old_length)
        self._buf = self._buf[: self.gap_start] + [_EMPTY] * gap_cells + after
        self.buf_end = new_length - 1
        self.gap_end = self.buf_end - len(after)
