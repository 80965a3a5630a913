"""Pluggable validators for string-shaped kinds (email, URL)."""

from __future__ import annotations

import re

from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from promptline.errors import ValidationError, ValidationErrorKind
from promptline.validation.schema import Kind, Modifier, ScalarValidator, Schema

_EMAIL_RE = re.compile(
    r"(?P<local>[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+)*)"
    r"@(?P<domain>[^@\s]+)"
)
_DNS_LABEL_RE = re.compile(r"[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?")
_URL_ADAPTER: TypeAdapter[AnyUrl] = TypeAdapter(AnyUrl)


def is_dns_name(host: str) -> bool:
    """True for host names made of at least two LDH labels."""
    name = host[:-1] if host.endswith(".") else host
    if not name or len(name) > 253:
        return False
    labels = name.split(".")
    if len(labels) < 2:
        return False
    if labels[-1].isdigit():
        return False
    return all(_DNS_LABEL_RE.fullmatch(label) for label in labels)


def validate_email(schema: Schema, raw: str) -> str:
    match = _EMAIL_RE.fullmatch(raw)
    if match is None or "." not in match.group("domain"):
        raise ValidationError(
            ValidationErrorKind.PATTERN_MISMATCH,
            f"{raw!r} is not a valid email address",
        )
    local = match.group("local")
    domain = match.group("domain").lower()
    if len(local) > 64:
        raise ValidationError(
            ValidationErrorKind.PATTERN_MISMATCH,
            "the local part of an email address is limited to 64 characters",
        )
    if schema.has(Modifier.DNS) and not is_dns_name(domain):
        raise ValidationError(
            ValidationErrorKind.PATTERN_MISMATCH,
            f"{domain!r} is not a valid domain name",
        )
    return f"{local}@{domain}"


def validate_url(schema: Schema, raw: str) -> str:
    try:
        url = _URL_ADAPTER.validate_python(raw)
    except PydanticValidationError as exc:
        reason = exc.errors()[0]["msg"] if exc.errors() else "invalid URL"
        raise ValidationError(
            ValidationErrorKind.PATTERN_MISMATCH,
            f"{raw!r} is not a valid URL ({reason.lower()})",
        ) from exc
    if schema.has(Modifier.DNS) and not (url.host and is_dns_name(url.host)):
        raise ValidationError(
            ValidationErrorKind.PATTERN_MISMATCH,
            f"{raw!r} does not name a DNS host",
        )
    return str(url)


DEFAULT_VALIDATORS: dict[Kind, ScalarValidator] = {
    Kind.EMAIL: validate_email,
    Kind.URL: validate_url,
}
