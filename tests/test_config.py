from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from promptline.config import (
    CONFIG_PATH_ENV,
    PromptConfig,
    get_config_path,
    load_config,
    save_config,
)


def test_load_defaults_when_config_missing(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "config.toml")

    assert cfg.prefix_prompt == " + "
    assert cfg.prefix_multi == "   * "
    assert cfg.prefix_error == "  [!] "
    assert cfg.true_string == "y"
    assert cfg.false_string == "n"
    assert cfg.interrupt_exit_code == 130
    assert cfg.eot_exit_code == 1
    assert cfg.exit_on_interrupt is True
    assert cfg.log_level == "WARN"


def test_config_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    original = PromptConfig(
        prefix_prompt="\x1b[1m?\x1b[0m ",
        prefix_multi=' "- ',
        prefix_error="  !! ",
        true_string="si",
        false_string="no",
        interrupt_exit_code=2,
        eot_exit_code=0,
        exit_on_interrupt=False,
        log_level="DEBUG",
    )

    save_config(original, path)
    loaded = load_config(path)

    assert loaded.model_dump() == original.model_dump()


def test_save_config_restricts_permissions(tmp_path: Path) -> None:
    path = save_config(PromptConfig(), tmp_path / "nested" / "config.toml")

    assert path.exists()
    if os.name == "posix":
        assert path.stat().st_mode & 0o777 == 0o600


def test_invalid_toml_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("prefix_prompt = [unterminated", encoding="utf-8")

    assert load_config(path).model_dump() == PromptConfig().model_dump()


def test_invalid_values_are_sanitized(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text(
        "\n".join(
            [
                'prefix_prompt = 42',
                'true_string = "   "',
                'false_string = " nope "',
                "interrupt_exit_code = 999",
                "eot_exit_code = true",
                'exit_on_interrupt = "yes"',
                'log_level = "warning"',
            ]
        ),
        encoding="utf-8",
    )

    cfg = load_config(path)

    assert cfg.prefix_prompt == " + "
    assert cfg.true_string == "y"
    assert cfg.false_string == "nope"
    assert cfg.interrupt_exit_code == 130
    assert cfg.eot_exit_code == 1
    assert cfg.exit_on_interrupt is True
    assert cfg.log_level == "WARN"


def test_unknown_log_level_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text('log_level = "TRACE"\n', encoding="utf-8")

    assert load_config(path).log_level == "WARN"


def test_assignment_is_validated() -> None:
    cfg = PromptConfig()

    with pytest.raises(PydanticValidationError):
        cfg.interrupt_exit_code = 256
    with pytest.raises(PydanticValidationError):
        cfg.true_string = ""

    cfg.log_level = "warning"  # type: ignore[assignment]
    assert cfg.log_level == "WARN"


def test_config_path_honors_environment(monkeypatch, tmp_path: Path) -> None:
    target = tmp_path / "custom.toml"
    monkeypatch.setenv(CONFIG_PATH_ENV, str(target))

    assert get_config_path() == target
    assert get_config_path(tmp_path / "explicit.toml") == tmp_path / "explicit.toml"


def test_config_path_defaults_without_environment(monkeypatch) -> None:
    monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)

    path = get_config_path()

    assert path.name == "config.toml"
    assert path.parent.name == "promptline"
