"""Masking of secret values before data is logged or echoed."""

import re
from typing import Any, Iterable, Mapping

from toolspine.kernel.validation.fields import FieldDefinition
from toolspine.kernel.validation.formatting import REDACTED

# Keys that look like credentials are masked even without a field definition
SECRET_KEY_PATTERNS = (
    re.compile(r"api[_-]?key", re.IGNORECASE),
    re.compile(r"secret", re.IGNORECASE),
    re.compile(r"token", re.IGNORECASE),
    re.compile(r"password", re.IGNORECASE),
    re.compile(r"private[_-]?key", re.IGNORECASE),
)


def looks_secret(key: str) -> bool:
    return any(pattern.search(key) for pattern in SECRET_KEY_PATTERNS)


def redact(
    data: Mapping[str, Any],
    fields: Mapping[str, FieldDefinition] | None = None,
    extra_keys: Iterable[str] = (),
) -> dict[str, Any]:
    """Return a copy of ``data`` with secret values replaced by ``***REDACTED***``.

    A value is masked when its field is secret or sensitive, when its key is
    listed in ``extra_keys``, or when its key matches a credential pattern.
    Empty values are left as they are. Nested object fields are redacted
    against their declared properties.

    Args:
        data: Input or config record
        fields: Field definitions of the record's namespace
        extra_keys: Additional keys to always mask

    Returns:
        Redacted shallow copy; ``data`` is not modified
    """
    fields = fields or {}
    extra = set(extra_keys)
    redacted: dict[str, Any] = {}
    for key, value in data.items():
        field = fields.get(key)
        secret = key in extra or looks_secret(key) or (field is not None and field.is_secret)
        if secret and value not in (None, ""):
            redacted[key] = REDACTED
        elif isinstance(value, Mapping):
            properties = field.properties if field is not None else None
            redacted[key] = redact(value, properties or {})
        else:
            redacted[key] = value
    return redacted
