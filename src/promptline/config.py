"""XDG config loading/saving."""

from __future__ import annotations

import os
import sys
from contextlib import suppress
from pathlib import Path
from typing import Literal, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator

from promptline.logging import normalize_level

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

DEFAULT_CONFIG_PATH = Path("~/.config/promptline/config.toml").expanduser()
CONFIG_PATH_ENV = "PROMPTLINE_CONFIG"
DEFAULT_PREFIX_PROMPT = " + "
DEFAULT_PREFIX_MULTI = "   * "
DEFAULT_PREFIX_ERROR = "  [!] "
DEFAULT_TRUE_STRING = "y"
DEFAULT_FALSE_STRING = "n"
DEFAULT_INTERRUPT_EXIT_CODE = 130
DEFAULT_EOT_EXIT_CODE = 1
DEFAULT_LOG_LEVEL: Literal["DEBUG", "INFO", "WARN", "ERROR"] = "WARN"

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARN", "ERROR"}
_PREFIX_FIELDS = ("prefix_prompt", "prefix_multi", "prefix_error")
_BOOL_STRING_FIELDS = ("true_string", "false_string")


class PromptConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    prefix_prompt: str = DEFAULT_PREFIX_PROMPT
    prefix_multi: str = DEFAULT_PREFIX_MULTI
    prefix_error: str = DEFAULT_PREFIX_ERROR
    true_string: str = Field(default=DEFAULT_TRUE_STRING, min_length=1)
    false_string: str = Field(default=DEFAULT_FALSE_STRING, min_length=1)
    interrupt_exit_code: int = Field(default=DEFAULT_INTERRUPT_EXIT_CODE, ge=0, le=255)
    eot_exit_code: int = Field(default=DEFAULT_EOT_EXIT_CODE, ge=0, le=255)
    exit_on_interrupt: bool = True
    log_level: Literal["DEBUG", "INFO", "WARN", "ERROR"] = DEFAULT_LOG_LEVEL

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return normalize_level(value)
        return value


def get_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()
    env_path = os.getenv(CONFIG_PATH_ENV, "").strip()
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def _escape(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    # Prefixes may carry ANSI styling; TOML basic strings forbid raw control characters.
    return "".join(f"\\u{ord(ch):04X}" if ord(ch) < 0x20 or ord(ch) == 0x7F else ch for ch in escaped)


def _toml_scalar(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return f'"{_escape(value)}"'
    raise TypeError(f"Unsupported TOML scalar type: {type(value)!r}")


def _exit_code(value: object, fallback: int) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 255:
        return value
    return fallback


def _sanitize(raw: dict[str, object]) -> PromptConfig:
    cfg = PromptConfig()

    for name in _PREFIX_FIELDS:
        value = raw.get(name)
        if isinstance(value, str):
            setattr(cfg, name, value)

    for name in _BOOL_STRING_FIELDS:
        value = raw.get(name)
        if isinstance(value, str) and value.strip():
            setattr(cfg, name, value.strip())

    cfg.interrupt_exit_code = _exit_code(raw.get("interrupt_exit_code"), cfg.interrupt_exit_code)
    cfg.eot_exit_code = _exit_code(raw.get("eot_exit_code"), cfg.eot_exit_code)

    exit_on_interrupt = raw.get("exit_on_interrupt", cfg.exit_on_interrupt)
    if isinstance(exit_on_interrupt, bool):
        cfg.exit_on_interrupt = exit_on_interrupt

    log_level = raw.get("log_level", cfg.log_level)
    if isinstance(log_level, str):
        normalized = normalize_level(log_level)
        if normalized in _VALID_LOG_LEVELS:
            cfg.log_level = cast(Literal["DEBUG", "INFO", "WARN", "ERROR"], normalized)

    return cfg


def load_config(path: str | Path | None = None) -> PromptConfig:
    resolved = get_config_path(path)
    if not resolved.exists():
        return PromptConfig()
    try:
        with resolved.open("rb") as handle:
            raw = tomllib.load(handle)
    except (tomllib.TOMLDecodeError, OSError):
        return PromptConfig()
    if not isinstance(raw, dict):
        return PromptConfig()
    return _sanitize(raw)


def save_config(config: PromptConfig, path: str | Path | None = None) -> Path:
    resolved = get_config_path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)

    lines = [
        f"prefix_prompt = {_toml_scalar(config.prefix_prompt)}",
        f"prefix_multi = {_toml_scalar(config.prefix_multi)}",
        f"prefix_error = {_toml_scalar(config.prefix_error)}",
        f"true_string = {_toml_scalar(config.true_string)}",
        f"false_string = {_toml_scalar(config.false_string)}",
        f"interrupt_exit_code = {_toml_scalar(config.interrupt_exit_code)}",
        f"eot_exit_code = {_toml_scalar(config.eot_exit_code)}",
        f"exit_on_interrupt = {_toml_scalar(config.exit_on_interrupt)}",
        f"log_level = {_toml_scalar(config.log_level)}",
    ]

    resolved.write_text("\n".join(lines) + "\n", encoding="utf-8")
    with suppress(OSError):
        resolved.chmod(0o600)
    return resolved
