"""Structural checks for string formats and URLs."""

import ipaddress
import re
from typing import Callable
from urllib.parse import urlsplit

from toolspine.kernel.validation.fields import StringFormat

_EMAIL_RE = re.compile(r"^(?!\.)(?!.*\.\.)[A-Za-z0-9_'+\-.]*[A-Za-z0-9_+\-]@(?:[A-Za-z0-9][A-Za-z0-9\-]*\.)+[A-Za-z]{2,}$")
_UUID_RE = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)
_BASE64_RE = re.compile(r"^(?:[A-Za-z0-9+/]{4})*(?:[A-Za-z0-9+/]{2}==|[A-Za-z0-9+/]{3}=)?$")
_JWT_RE = re.compile(r"^[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*$")
_SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_HEX_COLOR_RE = re.compile(r"^#(?:[A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")
_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


def url_scheme(value: str) -> str | None:
    """Return the scheme of an absolute URL, or None if ``value`` is not one."""
    try:
        parts = urlsplit(value)
    except ValueError:
        return None
    if not parts.scheme or not re.fullmatch(r"[A-Za-z][A-Za-z0-9+.\-]*", parts.scheme):
        return None
    # Hierarchical URLs need a host; mailto:, urn: and friends only a path
    if value[len(parts.scheme) + 1:].startswith("//"):
        if not parts.hostname:
            return None
    elif not parts.path:
        return None
    if any(ch.isspace() for ch in value):
        return None
    return parts.scheme.lower()


def is_url(value: str) -> bool:
    return url_scheme(value) is not None


def _is_ipv4(value: str) -> bool:
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return False
    return True


def _is_ipv6(value: str) -> bool:
    try:
        ipaddress.IPv6Address(value)
    except ValueError:
        return False
    return True


def _matcher(pattern: re.Pattern[str]) -> Callable[[str], bool]:
    return lambda value: pattern.match(value) is not None


FORMAT_CHECKS: dict[StringFormat, Callable[[str], bool]] = {
    StringFormat.EMAIL: _matcher(_EMAIL_RE),
    StringFormat.URL: is_url,
    StringFormat.UUID: _matcher(_UUID_RE),
    StringFormat.IPV4: _is_ipv4,
    StringFormat.IPV6: _is_ipv6,
    StringFormat.BASE64: _matcher(_BASE64_RE),
    StringFormat.JWT: _matcher(_JWT_RE),
    StringFormat.SLUG: _matcher(_SLUG_RE),
    StringFormat.HEX_COLOR: _matcher(_HEX_COLOR_RE),
    StringFormat.SEMVER: _matcher(_SEMVER_RE),
}

FORMAT_DESCRIPTIONS: dict[StringFormat, str] = {
    StringFormat.EMAIL: "a valid email address",
    StringFormat.URL: "a valid URL",
    StringFormat.UUID: "a valid UUID",
    StringFormat.IPV4: "a valid IPv4 address",
    StringFormat.IPV6: "a valid IPv6 address",
    StringFormat.BASE64: "valid base64",
    StringFormat.JWT: "a valid JWT",
    StringFormat.SLUG: "a valid slug",
    StringFormat.HEX_COLOR: "a valid hex color",
    StringFormat.SEMVER: "a valid semantic version",
}


def check_format(value: str, fmt: StringFormat) -> bool:
    """Return True when ``value`` satisfies ``fmt``."""
    return FORMAT_CHECKS[fmt](value)
