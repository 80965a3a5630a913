"""Declared kind and constraints for one answer."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from enum import Enum, IntFlag
from typing import Annotated, Any, Union

from pydantic import BaseModel, ConfigDict, Field, PlainValidator, model_validator
from pydantic import ValidationError as PydanticValidationError

from promptline.errors import SchemaError

Number = Union[int, float]


class Kind(str, Enum):
    BOOL = "bool"
    INT64 = "int64"
    UINT64 = "uint64"
    FLOAT64 = "float64"
    STRING = "string"
    EMAIL = "email"
    URL = "url"
    PATTERN = "pattern"
    CUSTOM = "custom"
    SLICE_INT64 = "[]int64"
    SLICE_UINT64 = "[]uint64"
    SLICE_FLOAT64 = "[]float64"
    SLICE_STRING = "[]string"

    @property
    def is_slice(self) -> bool:
        return self in _SLICE_ELEMENTS

    @property
    def element(self) -> Kind:
        return _SLICE_ELEMENTS.get(self, self)

    @property
    def is_numeric(self) -> bool:
        return self.element in (Kind.INT64, Kind.UINT64, Kind.FLOAT64)


_SLICE_ELEMENTS = {
    Kind.SLICE_INT64: Kind.INT64,
    Kind.SLICE_UINT64: Kind.UINT64,
    Kind.SLICE_FLOAT64: Kind.FLOAT64,
    Kind.SLICE_STRING: Kind.STRING,
}


class Modifier(IntFlag):
    NONE = 0
    REQUIRED = 1
    STRICT_STRING = 2
    DNS = 4
    TRIM_SPACE = 8


def _to_modifier(value: object) -> Modifier:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Invalid modifier flags: {value!r}")
    return Modifier(value)


BUILTIN_BOOL_TOKENS: dict[str, bool] = {
    **{token: True for token in ("1", "t", "T", "TRUE", "true", "True", "y", "Y", "yes", "YES", "Yes")},
    **{token: False for token in ("0", "f", "F", "FALSE", "false", "False", "n", "N", "no", "NO", "No")},
}

# (schema, raw answer) -> normalized answer; raises promptline.errors.ValidationError.
ScalarValidator = Callable[[Any, str], str]


class Schema(BaseModel):
    """Constraint set for one question.

    Builder methods return the schema so calls can be chained. A schema is
    single use: call ``reset`` before configuring the next question.
    """

    model_config = ConfigDict(validate_assignment=True)

    kind: Kind = Kind.STRING
    modifiers: Annotated[Modifier, PlainValidator(_to_modifier)] = Modifier.NONE
    min: Number | None = None
    max: Number | None = None
    default: str = ""
    bool_tokens: dict[str, bool] = Field(default_factory=dict)
    choices: list[Any] | None = None
    patterns: dict[str, str] = Field(default_factory=dict)
    validator: ScalarValidator | None = Field(default=None, exclude=True)

    @model_validator(mode="after")
    def check_bounds(self) -> Schema:
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"min ({self.min}) is greater than max ({self.max})")
        return self

    @property
    def required(self) -> bool:
        return Modifier.REQUIRED in self.modifiers

    def has(self, flag: Modifier) -> bool:
        return flag in self.modifiers

    # == Builder

    def set_kind(self, kind: Kind | str) -> Schema:
        return self._assign(kind=kind)

    def set_modifiers(self, flags: Modifier | int) -> Schema:
        return self._assign(modifiers=flags)

    def set_min(self, bound: Number) -> Schema:
        return self._assign(min=bound)

    def set_max(self, bound: Number) -> Schema:
        return self._assign(max=bound)

    def set_range(self, low: Number, high: Number) -> Schema:
        if low > high:
            raise SchemaError(f"Invalid range: {low} > {high}", hint="Pass the lower bound first.")
        self._assign(min=None, max=None)
        return self._assign(min=low, max=high)

    def set_default(self, raw: str) -> Schema:
        return self._assign(default=raw)

    def set_bool_tokens(self, tokens: Mapping[str, bool]) -> Schema:
        """Accept extra boolean literals, in lower, upper and title case too."""
        merged = dict(self.bool_tokens)
        for token, value in tokens.items():
            if not token:
                continue
            for variant in (token, token.lower(), token.upper(), token.title()):
                merged[variant] = bool(value)
        return self._assign(bool_tokens=merged)

    def set_choices(self, choices: Iterable[Any]) -> Schema:
        candidates = list(choices)
        if not candidates:
            raise SchemaError("Choice list is empty.", hint="Pass at least one candidate.")
        return self._assign(choices=candidates)

    def add_pattern(self, name: str, regex: str) -> Schema:
        try:
            re.compile(regex)
        except re.error as exc:
            raise SchemaError(f"Invalid regular expression for {name}: {exc}") from exc
        patterns = dict(self.patterns)
        patterns[name] = regex
        return self._assign(patterns=patterns)

    def set_validator(self, validator: ScalarValidator) -> Schema:
        return self._assign(validator=validator)

    def reset(self) -> Schema:
        fresh = type(self)()
        self._assign(min=None, max=None)
        for name in type(self).model_fields:
            setattr(self, name, getattr(fresh, name))
        return self

    def _assign(self, **values: object) -> Schema:
        # Assignment validation stores the value before the bounds check runs.
        snapshot = {name: self.__dict__[name] for name in values}
        try:
            for name, value in values.items():
                setattr(self, name, value)
        except PydanticValidationError as exc:
            self.__dict__.update(snapshot)
            raise SchemaError(
                "Invalid schema setting.",
                hint="; ".join(str(error["msg"]) for error in exc.errors()),
            ) from exc
        return self
