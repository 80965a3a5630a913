"""Question builder on top of the validation engine."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from promptline.config import PromptConfig
from promptline.errors import SchemaError
from promptline.terminal import ansi
from promptline.validation import Kind, Modifier, ScalarValidator, Schema, ValidationEngine, validate


def render_choices(choices: Sequence[Any], default: str = "") -> str:
    """Space separated candidates in brackets, the default one in bold."""
    rendered = [ansi.bold(str(choice)) if default and str(choice) == default else str(choice) for choice in choices]
    return "[" + " ".join(rendered) + "]"


class Question:
    """Chainable prompt configuration; the schema is reset after every read."""

    def __init__(
        self,
        engine: ValidationEngine,
        *,
        config: PromptConfig | None = None,
        schema: Schema | None = None,
    ) -> None:
        self.engine = engine
        self.config = config or PromptConfig()
        self.schema = schema or Schema()
        self._prompt = ""

    # == Configuration

    def prompt(self, text: str) -> Question:
        self._prompt = text
        return self

    def default(self, raw: str) -> Question:
        self.schema.set_default(raw)
        return self

    def mod(self, flags: Modifier | int) -> Question:
        self.schema.set_modifiers(flags)
        return self

    def min(self, bound: int | float) -> Question:
        self.schema.set_min(bound)
        return self

    def max(self, bound: int | float) -> Question:
        self.schema.set_max(bound)
        return self

    def range(self, low: int | float, high: int | float) -> Question:
        self.schema.set_range(low, high)
        return self

    def pattern(self, name: str, regex: str) -> Question:
        self.schema.add_pattern(name, regex)
        return self

    # == Scalars

    def read_bool(self) -> bool:
        self.schema.set_bool_tokens({self.config.true_string: True, self.config.false_string: False})
        return self._read(Kind.BOOL)

    def read_int64(self) -> int:
        return self._read(Kind.INT64)

    def read_uint64(self) -> int:
        return self._read(Kind.UINT64)

    def read_float64(self) -> float:
        return self._read(Kind.FLOAT64)

    def read_string(self) -> str:
        return self._read(Kind.STRING)

    def read_email(self) -> str:
        return self._read(Kind.EMAIL)

    def read_url(self) -> str:
        return self._read(Kind.URL)

    def read_pattern(self) -> str:
        return self._read(Kind.PATTERN)

    def read_custom(self, validator: ScalarValidator) -> str:
        self.schema.set_validator(validator)
        return self._read(Kind.CUSTOM)

    # == Slices

    def read_int64_slice(self) -> list[int]:
        return self._read(Kind.SLICE_INT64)

    def read_uint64_slice(self) -> list[int]:
        return self._read(Kind.SLICE_UINT64)

    def read_float64_slice(self) -> list[float]:
        return self._read(Kind.SLICE_FLOAT64)

    def read_string_slice(self) -> list[str]:
        return self._read(Kind.SLICE_STRING)

    # == Choices

    def choice_int64(self, choices: Sequence[int]) -> int:
        return self._read_choice(Kind.INT64, choices)

    def choice_uint64(self, choices: Sequence[int]) -> int:
        return self._read_choice(Kind.UINT64, choices)

    def choice_float64(self, choices: Sequence[float]) -> float:
        return self._read_choice(Kind.FLOAT64, choices)

    def choice_string(self, choices: Sequence[str]) -> str:
        return self._read_choice(Kind.STRING, choices)

    # == Internals

    def _read(self, kind: Kind) -> Any:
        try:
            self.schema.set_kind(kind)
            return self.engine.read(self.schema, self._full_prompt())
        finally:
            self._clean()

    def _read_choice(self, kind: Kind, choices: Sequence[Any]) -> Any:
        try:
            self.schema.set_kind(kind).set_choices(choices)
            header = f"{self.config.prefix_prompt}{self._prompt}"
            listing = f"{self.config.prefix_multi}{render_choices(choices, self.schema.default)}"
            self.engine.line.write(f"{header}{ansi.CRLF}{listing}{ansi.CRLF}")
            return self.engine.read(self.schema, self.config.prefix_multi)
        finally:
            self._clean()

    def _clean(self) -> None:
        self._prompt = ""
        self.schema.reset()

    def _full_prompt(self) -> str:
        prompt = f"{self.config.prefix_prompt}{self._prompt}"
        if self.schema.kind.is_slice:
            return prompt
        if self.schema.default:
            prompt += self._default_suffix()
        return prompt + (" " if prompt.endswith("?") else ": ")

    def _default_suffix(self) -> str:
        if self.schema.kind != Kind.BOOL:
            return f" [{ansi.bold(self.schema.default)}]"
        outcome = validate(self.schema, self.schema.default)
        if outcome.error is not None:
            raise SchemaError(
                f"Default value {self.schema.default!r} is not a boolean.",
                hint=f"Use {self.config.true_string!r} or {self.config.false_string!r}.",
            )
        true_str, false_str = self.config.true_string, self.config.false_string
        if outcome.value:
            return f" [{ansi.bold(true_str)}/{false_str}]"
        return f" [{true_str}/{ansi.bold(false_str)}]"
