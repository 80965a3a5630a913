"""Deterministic error model and exit code contract."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    INVALID_ARGS = 2
    CONFIG_ERROR = 3
    RUNTIME_ERROR = 4
    TERMINAL_ERROR = 5
    IO_ERROR = 6
    VALIDATION_ERROR = 7
    INTERRUPTED = 130


@dataclass
class PromptlineError(Exception):
    message: str
    code: ExitCode = ExitCode.RUNTIME_ERROR
    hint: str = ""

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} Hint: {self.hint}"
        return self.message


@dataclass
class TerminalError(PromptlineError):
    """Terminal attribute get/set failure; the session is unusable."""

    code: ExitCode = ExitCode.TERMINAL_ERROR


@dataclass
class StreamError(PromptlineError):
    """Read or write failure on the terminal streams."""

    code: ExitCode = ExitCode.IO_ERROR


@dataclass
class SchemaError(PromptlineError):
    """A schema that can never validate, such as an invalid default."""

    code: ExitCode = ExitCode.CONFIG_ERROR


class CapacityExceeded(Exception):
    """The gap buffer has no room left for another code point."""


class ValidationErrorKind(str, Enum):
    REQUIRED = "required"
    OUT_OF_RANGE = "out-of-range"
    TYPE_MISMATCH = "type-mismatch"
    INVALID_CHOICE = "invalid-choice"
    PATTERN_MISMATCH = "pattern-mismatch"


class ValidationError(Exception):
    """Recoverable answer rejection; handled inside the read loop."""

    def __init__(self, kind: ValidationErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"ValidationError({self.kind.value!r}, {self.message!r})"


class ReadAborted(Exception):
    """An interrupt event cancelled the line being read."""

    def __init__(self, event: object) -> None:
        super().__init__(f"Read aborted by {event}")
        self.event = event


def user_facing_error(message: str, *, hint: str = "") -> str:
    if hint:
        return f"Error: {message}. Next step: {hint}"
    return f"Error: {message}."
