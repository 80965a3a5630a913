"""Typed interactive prompts on a raw-mode terminal."""

from .config import PromptConfig, load_config, save_config
from .console import Console, open_console
from .editor import GapBuffer, LineEditor
from .errors import (
    CapacityExceeded,
    ExitCode,
    PromptlineError,
    ReadAborted,
    SchemaError,
    StreamError,
    TerminalError,
    ValidationError,
    ValidationErrorKind,
)
from .question import Question
from .terminal import InterruptEvent, InterruptKind, InterruptRouter, TerminalSession
from .validation import Kind, Modifier, Schema, ValidationEngine, ValidationOutcome, validate

__all__ = [
    "CapacityExceeded",
    "Console",
    "ExitCode",
    "GapBuffer",
    "InterruptEvent",
    "InterruptKind",
    "InterruptRouter",
    "Kind",
    "LineEditor",
    "load_config",
    "Modifier",
    "open_console",
    "PromptConfig",
    "PromptlineError",
    "Question",
    "ReadAborted",
    "save_config",
    "Schema",
    "SchemaError",
    "StreamError",
    "TerminalError",
    "TerminalSession",
    "validate",
    "ValidationEngine",
    "ValidationError",
    "ValidationErrorKind",
    "ValidationOutcome",
]
