"""ANSI control sequences and display-width helpers."""

from __future__ import annotations

import re
import unicodedata

# Input bytes
CTRL_A = 0x01
CTRL_C = 0x03
CTRL_D = 0x04
CTRL_E = 0x05
BACKSPACE = 0x08
ENTER = 0x0D
ESC = 0x1B
DELETE = 0x7F

CR = "\r"
CRLF = "\r\n"

# Cursor control
CURSOR_UP = "\x1b[A"
CURSOR_DOWN = "\x1b[B"
CURSOR_FORWARD = "\x1b[C"
CURSOR_BACKWARD = "\x1b[D"

# Erase
DEL_LINE_CR = "\x1b[2K\r"
DEL_LINE_CURSOR_UP = "\x1b[2K\x1b[A"

# Graphic mode
SET_BOLD = "\x1b[1m"
SET_OFF = "\x1b[0m"
LEN_ANSI = len(SET_BOLD) + len(SET_OFF)

_SGR_RE = re.compile(r"\x1b\[[0-9;]*m")


def strip_ansi(text: str) -> str:
    return _SGR_RE.sub("", text)


def char_width(ch: str) -> int:
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in ("W", "F"):
        return 2
    return 1


def display_width(text: str) -> int:
    """Number of terminal columns used by text, ignoring SGR styling bytes."""
    return sum(char_width(ch) for ch in strip_ansi(text))


def bold(text: str) -> str:
    return f"{SET_BOLD}{text}{SET_OFF}"
