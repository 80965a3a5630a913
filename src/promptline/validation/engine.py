"""Typed validation of finished lines and the read/retry loop."""

from __future__ import annotations

import logging as py_logging
import math
import re
import unicodedata
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from promptline.errors import SchemaError, ValidationError, ValidationErrorKind
from promptline.validation.extra import DEFAULT_VALIDATORS
from promptline.validation.schema import BUILTIN_BOOL_TOKENS, Kind, Modifier, ScalarValidator, Schema

logger = py_logging.getLogger(__name__)

DEFAULT_PREFIX_MULTI = "   * "

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
UINT64_MAX = 2**64 - 1

_INT_RE = re.compile(r"[+-]?[0-9]+")
_UINT_RE = re.compile(r"\+?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_FLOAT_SPECIAL_RE = re.compile(r"[+-]?(?:inf|infinity|nan)", re.IGNORECASE)

_ZERO_VALUES: dict[Kind, Any] = {
    Kind.BOOL: False,
    Kind.INT64: 0,
    Kind.UINT64: 0,
    Kind.FLOAT64: 0.0,
}


@dataclass(frozen=True)
class ValidationOutcome:
    """Either a typed value or the classified reason it was rejected."""

    value: Any = None
    error: ValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.value


class LineInput(Protocol):
    def read_line(self, prompt: str, *, seed: str = "") -> str: ...

    def write(self, text: str) -> None: ...

    def newline(self) -> None: ...

    def show_error(self, message: str) -> None: ...

    def clear_error(self) -> None: ...


def validate(
    schema: Schema,
    raw: str,
    *,
    validators: Mapping[Kind, ScalarValidator] | None = None,
) -> ValidationOutcome:
    """Parse raw against schema without any terminal interaction.

    For slice kinds raw is one element: an empty answer yields the sentinel
    (zero value) and neither the default nor ``REQUIRED`` applies.
    """
    try:
        value = parse(schema, raw, validators=validators)
    except ValidationError as exc:
        return ValidationOutcome(error=exc)
    return ValidationOutcome(value=value)


def parse(
    schema: Schema,
    raw: str,
    *,
    validators: Mapping[Kind, ScalarValidator] | None = None,
) -> Any:
    kind = schema.kind.element
    text = raw.strip() if schema.has(Modifier.TRIM_SPACE) else raw

    if text == "":
        if schema.kind.is_slice:
            return zero_value(kind)
        if schema.required:
            raise ValidationError(ValidationErrorKind.REQUIRED, "a value is required")
        if schema.default == "":
            value = zero_value(kind)
            _check_choice(schema, value, text)
            return value
        text = schema.default

    value = _parse_scalar(kind, schema, text, validators)
    _check_choice(schema, value, text)
    return value


def zero_value(kind: Kind) -> Any:
    return _ZERO_VALUES.get(kind.element, "")


def is_sentinel(kind: Kind, value: Any) -> bool:
    """True when a slice element ends the list."""
    return value == zero_value(kind)


def _parse_scalar(
    kind: Kind,
    schema: Schema,
    text: str,
    validators: Mapping[Kind, ScalarValidator] | None,
) -> Any:
    if kind == Kind.BOOL:
        return _parse_bool(schema, text)
    if kind == Kind.INT64:
        return _check_bounds(schema, _parse_int(text, signed=True), text)
    if kind == Kind.UINT64:
        return _check_bounds(schema, _parse_int(text, signed=False), text)
    if kind == Kind.FLOAT64:
        return _check_bounds(schema, _parse_float(text), text)
    if kind == Kind.STRING:
        return _parse_string(schema, text)
    if kind == Kind.PATTERN:
        return _parse_pattern(schema, _parse_string(schema, text))
    if kind in (Kind.EMAIL, Kind.URL, Kind.CUSTOM):
        validator = schema.validator or _lookup_validator(kind, validators)
        return validator(schema, text)
    raise SchemaError(f"Unsupported answer kind: {kind.value}")


def _lookup_validator(kind: Kind, validators: Mapping[Kind, ScalarValidator] | None) -> ScalarValidator:
    if validators is not None and kind in validators:
        return validators[kind]
    validator = DEFAULT_VALIDATORS.get(kind)
    if validator is None:
        raise SchemaError(
            f"No validator registered for kind {kind.value}.",
            hint="Call Schema.set_validator before reading a custom kind.",
        )
    return validator


def _parse_bool(schema: Schema, text: str) -> bool:
    if text in schema.bool_tokens:
        return schema.bool_tokens[text]
    if text in BUILTIN_BOOL_TOKENS:
        return BUILTIN_BOOL_TOKENS[text]
    raise ValidationError(ValidationErrorKind.TYPE_MISMATCH, f"{text!r} is not a boolean")


def _parse_int(text: str, *, signed: bool) -> int:
    grammar = _INT_RE if signed else _UINT_RE
    if not grammar.fullmatch(text):
        label = "an integer" if signed else "an unsigned integer"
        raise ValidationError(ValidationErrorKind.TYPE_MISMATCH, f"{text!r} is not {label}")
    value = int(text)
    low, high = (INT64_MIN, INT64_MAX) if signed else (0, UINT64_MAX)
    if value < low or value > high:
        raise ValidationError(
            ValidationErrorKind.OUT_OF_RANGE,
            f"{text} does not fit in {'int64' if signed else 'uint64'}",
        )
    return value


def _parse_float(text: str) -> float:
    special = _FLOAT_SPECIAL_RE.fullmatch(text) is not None
    if not special and not _FLOAT_RE.fullmatch(text):
        raise ValidationError(ValidationErrorKind.TYPE_MISMATCH, f"{text!r} is not a number")
    value = float(text)
    if math.isinf(value) and not special:
        raise ValidationError(ValidationErrorKind.OUT_OF_RANGE, f"{text} does not fit in float64")
    return value


def _parse_string(schema: Schema, text: str) -> str:
    if schema.has(Modifier.STRICT_STRING):
        for ch in text:
            if unicodedata.category(ch).startswith("C"):
                raise ValidationError(
                    ValidationErrorKind.PATTERN_MISMATCH,
                    f"character U+{ord(ch):04X} is not allowed",
                )
    _check_bounds(schema, len(text), text, label="length")
    return text


def _parse_pattern(schema: Schema, text: str) -> str:
    for name, regex in schema.patterns.items():
        if re.fullmatch(regex, text) is None:
            raise ValidationError(ValidationErrorKind.PATTERN_MISMATCH, f"{text!r} is not a valid {name}")
    return text


def _check_bounds(schema: Schema, value: int | float, text: str, *, label: str = "") -> Any:
    low, high = schema.min, schema.max
    if low is None and high is None:
        return value
    inside = (low is None or value >= low) and (high is None or value <= high)
    if inside:
        return value
    subject = f"{label} {value}" if label else text
    if low is not None and high is not None:
        message = f"{subject} is out of range [{low}, {high}]"
    elif low is not None:
        message = f"{subject} is less than {low}"
    else:
        message = f"{subject} is greater than {high}"
    raise ValidationError(ValidationErrorKind.OUT_OF_RANGE, message)


def _check_choice(schema: Schema, value: Any, text: str) -> None:
    if schema.choices is None:
        return
    for candidate in schema.choices:
        if candidate == value and isinstance(candidate, bool) == isinstance(value, bool):
            return
    listed = ", ".join(str(candidate) for candidate in schema.choices)
    raise ValidationError(ValidationErrorKind.INVALID_CHOICE, f"{text!r} is not one of: {listed}")


class ValidationEngine:
    """Reads lines until one validates; validation errors never escape."""

    def __init__(
        self,
        line: LineInput,
        *,
        prefix_multi: str = DEFAULT_PREFIX_MULTI,
        validators: Mapping[Kind, ScalarValidator] | None = None,
    ) -> None:
        self.line = line
        self.prefix_multi = prefix_multi
        self._validators: dict[Kind, ScalarValidator] = dict(DEFAULT_VALIDATORS)
        if validators:
            self._validators.update(validators)

    def register_validator(self, kind: Kind, validator: ScalarValidator) -> None:
        self._validators[kind] = validator

    def validate(self, schema: Schema, raw: str) -> ValidationOutcome:
        return validate(schema, raw, validators=self._validators)

    def read(self, schema: Schema, prompt: str) -> Any:
        self._check_schema(schema)
        if schema.kind.is_slice:
            return self._read_slice(schema, prompt)

        had_error = False
        while True:
            outcome = self.validate(schema, self.line.read_line(prompt))
            if outcome.error is not None:
                self._report(outcome.error)
                had_error = True
                continue
            if had_error:
                self.line.clear_error()
            return outcome.value

    def _read_slice(self, schema: Schema, prompt: str) -> list[Any]:
        self.line.write(prompt)
        self.line.newline()

        values: list[Any] = []
        had_error = False
        while True:
            outcome = self.validate(schema, self.line.read_line(self.prefix_multi))
            ended = outcome.error is None and is_sentinel(schema.kind, outcome.value)
            if ended and not values and schema.required:
                outcome = ValidationOutcome(
                    error=ValidationError(ValidationErrorKind.REQUIRED, "at least one value is required")
                )
            if outcome.error is not None:
                self._report(outcome.error)
                had_error = True
                continue
            if had_error:
                self.line.clear_error()
                had_error = False
            if ended:
                return values
            values.append(outcome.value)

    def _report(self, error: ValidationError) -> None:
        logger.debug("validation-error kind=%s message=%s", error.kind.value, error.message)
        self.line.show_error(error.message)

    def _check_schema(self, schema: Schema) -> None:
        if schema.default == "":
            return
        if schema.kind.is_slice:
            raise SchemaError(
                "Slice answers do not take a default value.",
                hint="An empty answer ends the list.",
            )
        outcome = self.validate(schema, schema.default)
        if outcome.error is not None:
            raise SchemaError(
                f"Default value {schema.default!r} is invalid: {outcome.error.message}",
                hint="Fix the default so it satisfies the schema.",
            )
