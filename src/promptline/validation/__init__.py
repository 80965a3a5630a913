"""Answer schemas and the typed validation engine."""

from .engine import ValidationEngine, ValidationOutcome, parse, validate, zero_value
from .extra import DEFAULT_VALIDATORS, is_dns_name, validate_email, validate_url
from .schema import BUILTIN_BOOL_TOKENS, Kind, Modifier, ScalarValidator, Schema

__all__ = [
    "BUILTIN_BOOL_TOKENS",
    "DEFAULT_VALIDATORS",
    "is_dns_name",
    "Kind",
    "Modifier",
    "parse",
    "ScalarValidator",
    "Schema",
    "validate",
    "validate_email",
    "validate_url",
    "ValidationEngine",
    "ValidationOutcome",
    "zero_value",
]
