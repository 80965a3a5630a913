"""Wiring of session, interrupt router, editor and engine for one terminal."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import IO

from promptline.config import PromptConfig
from promptline.editor import LineEditor
from promptline.question import Question
from promptline.terminal import InterruptKind, InterruptRouter, TerminalSession
from promptline.terminal.session import TermiosApi
from promptline.validation import ValidationEngine

logger = py_logging.getLogger(__name__)


@dataclass
class Console:
    session: TerminalSession
    router: InterruptRouter
    editor: LineEditor
    engine: ValidationEngine
    config: PromptConfig

    def question(self) -> Question:
        return Question(self.engine, config=self.config)


@contextmanager
def open_console(
    config: PromptConfig | None = None,
    *,
    input_stream: IO | None = None,
    output_stream: IO | None = None,
    termios_api: TermiosApi | None = None,
) -> Iterator[Console]:
    """Put the terminal in raw mode for the duration of the block.

    The terminal is restored on every exit path, including interrupt exits
    and unexpected exceptions.
    """
    cfg = config or PromptConfig()
    session = TerminalSession.open(input_stream, output_stream, termios_api=termios_api)
    router: InterruptRouter | None = None
    try:
        session.set_raw_mode()
        router = InterruptRouter(session).start()
        if cfg.exit_on_interrupt:
            router.exit_on(InterruptKind.INTERRUPT, cfg.interrupt_exit_code, session)
            router.exit_on(InterruptKind.END_OF_TRANSMISSION, cfg.eot_exit_code, session)
        editor = LineEditor(session, router, prefix_error=cfg.prefix_error)
        engine = ValidationEngine(editor, prefix_multi=cfg.prefix_multi)
        yield Console(session=session, router=router, editor=editor, engine=engine, config=cfg)
    finally:
        if router is not None:
            router.stop()
        session.close()
        logger.debug("console closed fd=%s", session.fd)
