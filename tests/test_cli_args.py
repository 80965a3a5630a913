from __future__ import annotations

import io
import json
from collections.abc import Iterator
from contextlib import contextmanager, redirect_stderr
from pathlib import Path
from types import SimpleNamespace

import pytest

from promptline import cli
from promptline.config import CONFIG_PATH_ENV, PromptConfig
from promptline.errors import ExitCode, ReadAborted
from promptline.question import Question
from promptline.terminal import InterruptEvent, InterruptKind
from promptline.validation import ValidationEngine


class ScriptedLine:
    def __init__(self, answers: list[str | BaseException]) -> None:
        self.answers = answers
        self.errors: list[str] = []

    def read_line(self, prompt: str, *, seed: str = "") -> str:
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def write(self, text: str) -> None:
        pass

    def newline(self) -> None:
        pass

    def show_error(self, message: str) -> None:
        self.errors.append(message)

    def clear_error(self) -> None:
        pass


class ScriptedConsoles:
    """Console factory replaying answers instead of touching a terminal."""

    def __init__(self, *answers: str | BaseException) -> None:
        self.answers = list(answers)
        self.configs: list[PromptConfig] = []

    @contextmanager
    def __call__(self, config: PromptConfig) -> Iterator[SimpleNamespace]:
        self.configs.append(config)
        engine = ValidationEngine(ScriptedLine(self.answers), prefix_multi=config.prefix_multi)
        yield SimpleNamespace(question=lambda: Question(engine, config=config))


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv(CONFIG_PATH_ENV, str(tmp_path / "config.toml"))


def _run(argv: list[str], consoles: ScriptedConsoles) -> tuple[int, str]:
    stdout = io.StringIO()
    code = cli.main(argv, console_factory=consoles, stdout=stdout)
    return code, stdout.getvalue()


def test_cli_help_includes_public_flags() -> None:
    help_text = cli.build_parser().format_help()

    for flag in ("--kind", "--prompt", "--default", "--required", "--strict", "--dns", "--trim"):
        assert flag in help_text
    for flag in ("--min", "--max", "--choice", "--pattern", "--config", "--log-level", "--log-file"):
        assert flag in help_text


def test_int_answer_is_printed_as_json() -> None:
    code, out = _run(["--kind", "int64", "--min", "0", "--max", "10"], ScriptedConsoles("11", "5"))

    assert code == 0
    assert json.loads(out) == 5


def test_default_kind_is_string() -> None:
    code, out = _run(["--prompt", "Name"], ScriptedConsoles("José"))

    assert code == 0
    assert out == '"José"\n'


def test_slice_answer_is_json_list() -> None:
    code, out = _run(["--kind", "[]string"], ScriptedConsoles("a", "b", ""))

    assert code == 0
    assert json.loads(out) == ["a", "b"]


def test_bool_answer_with_default() -> None:
    code, out = _run(["--kind", "bool", "--default", "n"], ScriptedConsoles(""))

    assert code == 0
    assert json.loads(out) is False


def test_choices_are_parsed_as_kind() -> None:
    code, out = _run(
        ["--kind", "int64", "--choice", "1", "--choice", "3", "--choice", "5"],
        ScriptedConsoles("2", "3"),
    )

    assert code == 0
    assert json.loads(out) == 3


def test_invalid_choice_value_fails_before_console_opens() -> None:
    consoles = ScriptedConsoles()
    stream = io.StringIO()
    with redirect_stderr(stream):
        code, out = _run(["--kind", "int64", "--choice", "one"], consoles)

    assert code == int(ExitCode.VALIDATION_ERROR)
    assert out == ""
    assert consoles.configs == []
    assert "Every --choice must be a valid int64." in stream.getvalue()


def test_choices_for_bool_are_rejected() -> None:
    code, _ = _run(["--kind", "bool", "--choice", "y"], ScriptedConsoles())

    assert code == int(ExitCode.INVALID_ARGS)


def test_pattern_kind_requires_pattern() -> None:
    code, _ = _run(["--kind", "pattern"], ScriptedConsoles("x"))

    assert code == int(ExitCode.INVALID_ARGS)


def test_pattern_kind_uses_named_patterns() -> None:
    code, out = _run(
        ["--kind", "pattern", "--pattern", "ticket=[A-Z]+-[0-9]+", "--trim"],
        ScriptedConsoles("nope", " AB-1 "),
    )

    assert code == 0
    assert json.loads(out) == "AB-1"


def test_malformed_pattern_flag_is_rejected() -> None:
    with redirect_stderr(io.StringIO()):
        code, _ = _run(["--pattern", "no-equals-sign"], ScriptedConsoles())

    assert code == 2


def test_invalid_default_is_config_error() -> None:
    code, _ = _run(["--kind", "int64", "--max", "3", "--default", "9"], ScriptedConsoles())

    assert code == int(ExitCode.CONFIG_ERROR)


def test_aborted_read_returns_interrupted() -> None:
    aborted = ReadAborted(InterruptEvent(InterruptKind.INTERRUPT, sequence=1))

    code, out = _run(["--no-exit-on-interrupt"], ScriptedConsoles(aborted))

    assert code == int(ExitCode.INTERRUPTED)
    assert out == ""


def test_exit_handler_code_is_returned() -> None:
    code, out = _run([], ScriptedConsoles(SystemExit(1)))

    assert code == 1
    assert out == ""


def test_unexpected_error_is_runtime_error() -> None:
    with redirect_stderr(io.StringIO()):
        code, _ = _run([], ScriptedConsoles(RuntimeError("boom")))

    assert code == int(ExitCode.RUNTIME_ERROR)


def test_no_exit_on_interrupt_flag_reaches_config() -> None:
    consoles = ScriptedConsoles("x")

    _run(["--no-exit-on-interrupt"], consoles)

    assert consoles.configs[0].exit_on_interrupt is False


def test_config_file_is_loaded(tmp_path: Path) -> None:
    config_path = tmp_path / "custom.toml"
    config_path.write_text('true_string = "si"\nfalse_string = "no"\n', encoding="utf-8")

    code, out = _run(["--kind", "bool", "--config", str(config_path)], ScriptedConsoles("SI"))

    assert code == 0
    assert json.loads(out) is True


def test_log_level_flag_is_accepted() -> None:
    code, _ = _run(["--log-level", "DEBUG"], ScriptedConsoles("x"))
    assert code == 0


def test_warning_alias_for_log_level_is_accepted() -> None:
    code, _ = _run(["--log-level", "warning"], ScriptedConsoles("x"))
    assert code == 0


def test_invalid_log_level_returns_error() -> None:
    with redirect_stderr(io.StringIO()):
        code, _ = _run(["--log-level", "INVALID"], ScriptedConsoles())
    assert code == 2


def test_invalid_kind_returns_error() -> None:
    with redirect_stderr(io.StringIO()):
        code, _ = _run(["--kind", "custom"], ScriptedConsoles())
    assert code == 2


def test_log_file_flag_writes_debug_log(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "promptline.log"

    code, _ = _run(["--log-file", str(log_file)], ScriptedConsoles("x"))

    assert code == 0
    assert log_file.exists()


def test_parse_args_converts_flag_values() -> None:
    namespace = cli.parse_args(
        ["--kind", "[]float64", "--min", "0.5", "--max", "10", "--pattern", "code = [0-9]+=x"]
    )

    assert namespace.kind == "[]float64"
    assert namespace.min == 0.5
    assert namespace.max == 10 and isinstance(namespace.max, int)
    assert namespace.pattern == [("code", " [0-9]+=x")]
