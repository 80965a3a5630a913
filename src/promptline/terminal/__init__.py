"""Raw terminal session and interrupt routing."""

from .interrupts import InterruptRouter, StreamFailure, exit_handler
from .models import InterruptEvent, InterruptKind, TerminalMode, TerminalState
from .session import TerminalSession

__all__ = [
    "exit_handler",
    "InterruptEvent",
    "InterruptKind",
    "InterruptRouter",
    "StreamFailure",
    "TerminalMode",
    "TerminalSession",
    "TerminalState",
]
