"""Public CLI contract and entrypoint."""

from __future__ import annotations

import argparse
import json
import logging as py_logging
import sys
from collections.abc import Callable, Sequence
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Any, TextIO

from .config import PromptConfig, load_config
from .console import Console, open_console
from .errors import ExitCode, PromptlineError, ReadAborted, ValidationError, user_facing_error
from .logging import configure_logging, normalize_level
from .question import Question
from .validation import Kind, Modifier, Schema, parse

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")
_VALID_KINDS = tuple(kind.value for kind in Kind if kind != Kind.CUSTOM)
_CHOICE_KINDS = (Kind.INT64, Kind.UINT64, Kind.FLOAT64, Kind.STRING)

ConsoleFactory = Callable[[PromptConfig], AbstractContextManager[Console]]

_READERS: dict[Kind, Callable[[Question], Any]] = {
    Kind.BOOL: Question.read_bool,
    Kind.INT64: Question.read_int64,
    Kind.UINT64: Question.read_uint64,
    Kind.FLOAT64: Question.read_float64,
    Kind.STRING: Question.read_string,
    Kind.EMAIL: Question.read_email,
    Kind.URL: Question.read_url,
    Kind.PATTERN: Question.read_pattern,
    Kind.SLICE_INT64: Question.read_int64_slice,
    Kind.SLICE_UINT64: Question.read_uint64_slice,
    Kind.SLICE_FLOAT64: Question.read_float64_slice,
    Kind.SLICE_STRING: Question.read_string_slice,
}


def _number_type(value: str) -> int | float:
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from exc


def _pattern_type(value: str) -> tuple[str, str]:
    name, sep, regex = value.partition("=")
    if not sep or not name.strip() or not regex:
        raise argparse.ArgumentTypeError("--pattern must look like NAME=REGEX")
    return name.strip(), regex


def _log_level_type(value: str) -> str:
    normalized = normalize_level(value)
    if normalized not in _VALID_LOG_LEVELS:
        accepted = ", ".join(_VALID_LOG_LEVELS)
        raise argparse.ArgumentTypeError(f"--log-level must be one of: {accepted}")
    return normalized


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="promptline",
        description="Ask one typed question on the terminal and print the answer as JSON.",
    )
    parser.add_argument("--kind", choices=_VALID_KINDS, default=Kind.STRING.value)
    parser.add_argument("--prompt", default="")
    parser.add_argument("--default", default="")
    parser.add_argument("--required", action="store_true")
    parser.add_argument("--strict", action="store_true", help="Reject control characters")
    parser.add_argument("--dns", action="store_true", help="Require DNS-shaped hosts")
    parser.add_argument("--trim", action="store_true", help="Strip surrounding whitespace")
    parser.add_argument("--min", type=_number_type, default=None)
    parser.add_argument("--max", type=_number_type, default=None)
    parser.add_argument("--choice", action="append", default=[], help="Accepted answer (repeatable)")
    parser.add_argument("--pattern", action="append", type=_pattern_type, default=[], metavar="NAME=REGEX")
    parser.add_argument("--config", type=Path, default=None)
    parser.add_argument(
        "--no-exit-on-interrupt",
        action="store_true",
        help="Report Ctrl-C/Ctrl-D as an aborted answer instead of exiting",
    )
    parser.add_argument("--log-level", type=_log_level_type, default=None)
    parser.add_argument("--log-file", type=Path, default=None)
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def _modifiers(namespace: argparse.Namespace) -> Modifier:
    flags = Modifier.NONE
    if namespace.required:
        flags |= Modifier.REQUIRED
    if namespace.strict:
        flags |= Modifier.STRICT_STRING
    if namespace.dns:
        flags |= Modifier.DNS
    if namespace.trim:
        flags |= Modifier.TRIM_SPACE
    return flags


def parse_choices(kind: Kind, raw_choices: Sequence[str]) -> list[Any]:
    if kind not in _CHOICE_KINDS:
        raise PromptlineError(
            f"Choices are not supported for kind {kind.value}.",
            code=ExitCode.INVALID_ARGS,
            hint="Use --choice with int64, uint64, float64 or string.",
        )
    element = Schema(kind=kind)
    choices: list[Any] = []
    for raw in raw_choices:
        try:
            choices.append(parse(element, raw))
        except ValidationError as exc:
            raise PromptlineError(
                f"Invalid choice {raw!r}: {exc.message}",
                code=ExitCode.VALIDATION_ERROR,
                hint=f"Every --choice must be a valid {kind.value}.",
            ) from exc
    return choices


def configure_question(question: Question, namespace: argparse.Namespace) -> Question:
    kind = Kind(namespace.kind)
    if kind == Kind.PATTERN and not namespace.pattern:
        raise PromptlineError(
            "Pattern answers need at least one pattern.",
            code=ExitCode.INVALID_ARGS,
            hint="Pass --pattern NAME=REGEX.",
        )
    question.prompt(namespace.prompt).mod(_modifiers(namespace))
    if namespace.default:
        question.default(namespace.default)
    if namespace.min is not None and namespace.max is not None:
        question.range(namespace.min, namespace.max)
    elif namespace.min is not None:
        question.min(namespace.min)
    elif namespace.max is not None:
        question.max(namespace.max)
    for name, regex in namespace.pattern:
        question.pattern(name, regex)
    return question


def ask(question: Question, namespace: argparse.Namespace) -> Any:
    kind = Kind(namespace.kind)
    configure_question(question, namespace)
    if namespace.choice:
        choices = parse_choices(kind, namespace.choice)
        if kind == Kind.INT64:
            return question.choice_int64(choices)
        if kind == Kind.UINT64:
            return question.choice_uint64(choices)
        if kind == Kind.FLOAT64:
            return question.choice_float64(choices)
        return question.choice_string(choices)
    return _READERS[kind](question)


def main(
    argv: Sequence[str] | None = None,
    *,
    console_factory: ConsoleFactory | None = None,
    stdout: TextIO | None = None,
) -> int:
    logger = configure_logging()
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            logger.warning("Argument parsing failed with exit code %s", exc.code)
        return int(exc.code or 0)

    config = load_config(namespace.config)
    if namespace.no_exit_on_interrupt:
        config.exit_on_interrupt = False
    logger = configure_logging(level=namespace.log_level or config.log_level, log_file=namespace.log_file)

    factory = console_factory or (lambda cfg: open_console(cfg, input_stream=sys.stdin, output_stream=sys.stderr))
    try:
        if namespace.choice:
            parse_choices(Kind(namespace.kind), namespace.choice)
        with factory(config) as console:
            logger.debug("Asking kind=%s", namespace.kind)
            value = ask(console.question(), namespace)
    except SystemExit as exc:
        logger.debug("Interrupt exit with code %s", exc.code)
        return int(exc.code or 0)
    except ReadAborted as exc:
        logger.info("Answer aborted by %s", exc.event)
        return int(ExitCode.INTERRUPTED)
    except PromptlineError as exc:
        logger.error(
            "Handled PromptlineError (code=%s): %s",
            int(exc.code),
            exc.message,
            exc_info=logger.isEnabledFor(py_logging.DEBUG),
        )
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except Exception:
        logger.exception("Unhandled exception in CLI entrypoint")
        print(user_facing_error("Unexpected runtime failure"), file=sys.stderr)
        return int(ExitCode.RUNTIME_ERROR)

    print(json.dumps(value, ensure_ascii=False), file=stdout or sys.stdout)
    return int(ExitCode.SUCCESS)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)
