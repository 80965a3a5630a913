from __future__ import annotations

import math

import pytest

from promptline.errors import SchemaError, ValidationError, ValidationErrorKind
from promptline.validation import Kind, Modifier, Schema, parse, validate, zero_value


def _error(schema: Schema, raw: str) -> ValidationError:
    outcome = validate(schema, raw)
    assert outcome.error is not None, f"{raw!r} unexpectedly validated to {outcome.value!r}"
    return outcome.error


def test_int64_range() -> None:
    schema = Schema(kind=Kind.INT64).set_range(0, 10)

    assert validate(schema, "5").value == 5
    assert _error(schema, "11").kind is ValidationErrorKind.OUT_OF_RANGE
    assert _error(schema, "abc").kind is ValidationErrorKind.TYPE_MISMATCH
    assert _error(schema, "11").message == "11 is out of range [0, 10]"


def test_one_sided_bounds_messages() -> None:
    assert _error(Schema(kind=Kind.INT64).set_min(3), "2").message == "2 is less than 3"
    assert _error(Schema(kind=Kind.INT64).set_max(3), "4").message == "4 is greater than 3"


@pytest.mark.parametrize(
    ("kind", "raw", "expected"),
    [
        (Kind.INT64, "-42", -42),
        (Kind.INT64, "+7", 7),
        (Kind.INT64, "9223372036854775807", 2**63 - 1),
        (Kind.UINT64, "18446744073709551615", 2**64 - 1),
        (Kind.UINT64, "+5", 5),
        (Kind.FLOAT64, "1.5", 1.5),
        (Kind.FLOAT64, ".5", 0.5),
        (Kind.FLOAT64, "-2e3", -2000.0),
        (Kind.FLOAT64, "inf", math.inf),
    ],
)
def test_numeric_values(kind: Kind, raw: str, expected: object) -> None:
    assert validate(Schema(kind=kind), raw).value == expected


@pytest.mark.parametrize(
    ("kind", "raw", "error_kind"),
    [
        (Kind.INT64, "9223372036854775808", ValidationErrorKind.OUT_OF_RANGE),
        (Kind.INT64, "-9223372036854775809", ValidationErrorKind.OUT_OF_RANGE),
        (Kind.INT64, "1.0", ValidationErrorKind.TYPE_MISMATCH),
        (Kind.INT64, " 1", ValidationErrorKind.TYPE_MISMATCH),
        (Kind.UINT64, "-1", ValidationErrorKind.TYPE_MISMATCH),
        (Kind.UINT64, "18446744073709551616", ValidationErrorKind.OUT_OF_RANGE),
        (Kind.FLOAT64, "1e400", ValidationErrorKind.OUT_OF_RANGE),
        (Kind.FLOAT64, "1,5", ValidationErrorKind.TYPE_MISMATCH),
        (Kind.FLOAT64, "infinite", ValidationErrorKind.TYPE_MISMATCH),
    ],
)
def test_numeric_errors(kind: Kind, raw: str, error_kind: ValidationErrorKind) -> None:
    assert _error(Schema(kind=kind), raw).kind is error_kind


def test_nan_is_accepted_without_bounds() -> None:
    assert math.isnan(validate(Schema(kind=Kind.FLOAT64), "NaN").value)
    assert _error(Schema(kind=Kind.FLOAT64).set_range(0, 1), "nan").kind is ValidationErrorKind.OUT_OF_RANGE


def test_float_bounds_are_inclusive() -> None:
    schema = Schema(kind=Kind.FLOAT64).set_range(0.5, 1.5)

    assert validate(schema, "0.5").value == 0.5
    assert validate(schema, "1.5").value == 1.5
    assert _error(schema, "1.51").kind is ValidationErrorKind.OUT_OF_RANGE


def test_bool_tokens_and_default() -> None:
    schema = Schema(kind=Kind.BOOL).set_bool_tokens({"y": True, "n": False}).set_default("n")

    assert validate(schema, "").value is False
    assert validate(schema, "n").value is False
    assert validate(schema, "Y").value is True
    assert validate(schema, "yes").value is True
    assert validate(schema, "0").value is False
    assert _error(schema, "maybe").kind is ValidationErrorKind.TYPE_MISMATCH


def test_custom_bool_tokens_get_case_variants() -> None:
    schema = Schema(kind=Kind.BOOL).set_bool_tokens({"si": True})

    assert validate(schema, "SI").value is True
    assert validate(schema, "Si").value is True
    assert _error(schema, "sI").kind is ValidationErrorKind.TYPE_MISMATCH


def test_required_string() -> None:
    schema = Schema(kind=Kind.STRING).set_modifiers(Modifier.REQUIRED)

    error = _error(schema, "")
    assert error.kind is ValidationErrorKind.REQUIRED
    assert validate(schema, "foo").value == "foo"


def test_empty_input_without_default_is_zero_value() -> None:
    assert validate(Schema(kind=Kind.STRING), "").value == ""
    assert validate(Schema(kind=Kind.INT64), "").value == 0
    assert validate(Schema(kind=Kind.FLOAT64), "").value == 0.0
    assert validate(Schema(kind=Kind.BOOL), "").value is False
    assert zero_value(Kind.SLICE_UINT64) == 0


def test_default_substitutes_empty_input() -> None:
    schema = Schema(kind=Kind.INT64).set_default("7")

    assert validate(schema, "").value == 7
    assert validate(schema, "8").value == 8


def test_trim_space_strips_before_parsing() -> None:
    schema = Schema(kind=Kind.INT64).set_modifiers(Modifier.TRIM_SPACE | Modifier.REQUIRED)

    assert validate(schema, "  12 ").value == 12
    assert _error(schema, "   ").kind is ValidationErrorKind.REQUIRED


def test_strict_string_rejects_control_characters() -> None:
    strict = Schema(kind=Kind.STRING).set_modifiers(Modifier.STRICT_STRING)

    assert _error(strict, "a\tb").kind is ValidationErrorKind.PATTERN_MISMATCH
    assert _error(strict, "a\u200bb").kind is ValidationErrorKind.PATTERN_MISMATCH
    assert validate(strict, "añb 日").value == "añb 日"
    assert validate(Schema(kind=Kind.STRING), "a\tb").value == "a\tb"


def test_string_length_bounds_count_code_points() -> None:
    schema = Schema(kind=Kind.STRING).set_range(2, 3)

    assert validate(schema, "日本語").value == "日本語"
    error = _error(schema, "abcd")
    assert error.kind is ValidationErrorKind.OUT_OF_RANGE
    assert error.message == "length 4 is out of range [2, 3]"


def test_patterns_must_fully_match() -> None:
    schema = (
        Schema(kind=Kind.PATTERN)
        .add_pattern("lowercase word", r"[a-z]+")
        .add_pattern("short value", r".{1,5}")
    )

    assert validate(schema, "abc").value == "abc"
    first = _error(schema, "abc1")
    assert first.kind is ValidationErrorKind.PATTERN_MISMATCH
    assert "lowercase word" in first.message
    assert "short value" in _error(schema, "abcdefg").message


def test_choices_require_exact_membership() -> None:
    schema = Schema(kind=Kind.INT64).set_choices([1, 3, 5])

    assert _error(schema, "2").kind is ValidationErrorKind.INVALID_CHOICE
    assert _error(schema, "2").message == "'2' is not one of: 1, 3, 5"
    assert validate(schema, "3").value == 3
    assert _error(schema, "x").kind is ValidationErrorKind.TYPE_MISMATCH
    assert _error(schema, "").kind is ValidationErrorKind.INVALID_CHOICE


def test_string_choices() -> None:
    schema = Schema(kind=Kind.STRING).set_choices(["red", "green"]).set_default("green")

    assert validate(schema, "").value == "green"
    assert _error(schema, "Red").kind is ValidationErrorKind.INVALID_CHOICE


def test_slice_elements_ignore_default_and_required() -> None:
    schema = Schema(kind=Kind.SLICE_INT64).set_modifiers(Modifier.REQUIRED)

    assert validate(schema, "").value == 0
    assert validate(schema, "4").value == 4
    assert _error(schema, "four").kind is ValidationErrorKind.TYPE_MISMATCH


def test_custom_kind_uses_schema_validator() -> None:
    def upper_only(schema: Schema, raw: str) -> str:
        if not raw.isupper():
            raise ValidationError(ValidationErrorKind.PATTERN_MISMATCH, f"{raw!r} is not upper case")
        return raw

    schema = Schema(kind=Kind.CUSTOM).set_validator(upper_only)

    assert validate(schema, "OK").value == "OK"
    assert _error(schema, "ok").kind is ValidationErrorKind.PATTERN_MISMATCH


def test_custom_kind_without_validator_is_schema_error() -> None:
    with pytest.raises(SchemaError):
        parse(Schema(kind=Kind.CUSTOM), "x")


def test_unwrap_raises_error() -> None:
    outcome = validate(Schema(kind=Kind.INT64), "x")

    assert outcome.ok is False
    with pytest.raises(ValidationError):
        outcome.unwrap()
    assert validate(Schema(kind=Kind.INT64), "1").unwrap() == 1


def test_schema_bounds_are_checked() -> None:
    with pytest.raises(SchemaError):
        Schema(kind=Kind.INT64).set_range(5, 1)
    with pytest.raises(SchemaError):
        Schema(kind=Kind.INT64).set_max(1).set_min(5)


def test_rejected_bound_leaves_schema_unchanged() -> None:
    schema = Schema(kind=Kind.INT64).set_max(3)

    with pytest.raises(SchemaError):
        schema.set_min(5)

    assert (schema.min, schema.max) == (None, 3)
    assert validate(schema, "2").unwrap() == 2

    schema.set_min(1)
    with pytest.raises(SchemaError):
        schema.set_max(0)

    assert (schema.min, schema.max) == (1, 3)
    assert validate(schema, "3").unwrap() == 3


def test_schema_rejects_bad_settings() -> None:
    with pytest.raises(SchemaError):
        Schema().set_kind("complex128")
    with pytest.raises(SchemaError):
        Schema().set_modifiers(True)
    with pytest.raises(SchemaError):
        Schema().set_choices([])
    with pytest.raises(SchemaError):
        Schema().add_pattern("broken", r"(")


def test_schema_reset_restores_initial_values() -> None:
    schema = (
        Schema(kind=Kind.FLOAT64)
        .set_modifiers(Modifier.REQUIRED | Modifier.DNS)
        .set_range(1, 2)
        .set_default("1.5")
        .set_choices([1.0, 2.0])
        .add_pattern("x", "x")
        .set_bool_tokens({"oui": True})
    )

    schema.reset()

    assert schema.model_dump() == Schema().model_dump()
    assert schema.validator is None
    assert schema.kind is Kind.STRING
    assert schema.modifiers == Modifier.NONE
    assert schema.min is None and schema.max is None


def test_kind_helpers() -> None:
    assert Kind.SLICE_FLOAT64.is_slice
    assert Kind.SLICE_FLOAT64.element is Kind.FLOAT64
    assert Kind.UINT64.is_numeric
    assert not Kind.STRING.is_numeric
    assert Kind("[]string") is Kind.SLICE_STRING
