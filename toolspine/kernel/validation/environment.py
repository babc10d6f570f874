"""Loading of configuration values from environment variables."""

import json
import logging
import os
from typing import Any, Mapping

from toolspine.kernel.validation.fields import FieldDefinition, FieldType

logger = logging.getLogger(__name__)

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


def coerce_env_value(field: FieldDefinition, raw: str) -> Any:
    """Convert an environment string according to the field's type.

    Values that cannot be converted are returned unchanged so that the
    validator reports them with the usual error codes.
    """
    if field.type == FieldType.NUMBER:
        try:
            number = float(raw)
        except ValueError:
            return raw
        return int(number) if number.is_integer() and "." not in raw else number
    if field.type == FieldType.BOOLEAN:
        lowered = raw.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        return raw
    if field.type in (FieldType.JSON, FieldType.ARRAY, FieldType.OBJECT):
        try:
            return json.loads(raw)
        except ValueError:
            return raw
    return raw


def resolve_env_config(
    fields: Mapping[str, FieldDefinition],
    config: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Fill config values from the environment for fields declaring ``env_var``.

    Explicit values in ``config`` always win; an environment variable is
    only consulted when the key is absent or ``None``.

    Args:
        fields: Config field definitions
        config: Explicitly supplied config values
        environ: Environment mapping (``os.environ`` when omitted)

    Returns:
        New config mapping including resolved environment values
    """
    environ = os.environ if environ is None else environ
    resolved = dict(config or {})
    for name, field in fields.items():
        if field.env_var is None or resolved.get(name) is not None:
            continue
        raw = environ.get(field.env_var)
        if raw is None:
            continue
        resolved[name] = coerce_env_value(field, raw)
        logger.debug("Loaded config field %s from environment variable %s", name, field.env_var)
    return resolved
