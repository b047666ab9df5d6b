"""Type definitions and enums for the skyport SDK."""

import re
from enum import Enum

_VERSION_RE = re.compile(r"v?(\d+(?:\.\d+)*)", re.IGNORECASE)


def parse_version(version: str) -> tuple[int, ...]:
    """
    Normalize a version tag to comparable components.

    Trailing zero components are dropped, so "v2.0" and "v2" compare equal.
    """
    match = _VERSION_RE.fullmatch(str(version).strip())
    if not match:
        raise ValueError(f"Not an API version: {version!r}")
    parts = [int(p) for p in match.group(1).split(".")]
    while len(parts) > 1 and parts[-1] == 0:
        parts.pop()
    return tuple(parts)


class EndpointType(str, Enum):
    """Service catalog endpoint a request is sent to."""

    PUBLIC = "public"
    ADMIN = "admin"
    INTERNAL = "internal"


class HttpMethod(str, Enum):
    """HTTP verbs used by request definitions."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"


class VersionPolicy(str, Enum):
    """How a registry picks an API version for a version hint."""

    MOST_SPECIFIC = "most_specific"  # Longest compatible version, ties go to the newest
    EXACT = "exact"  # Normalized version must equal the hint


class ValidationOutcome(str, Enum):
    """Result of checking a session's token against the validator request."""

    VALID = "valid"
    INVALID_TOKEN = "invalid_token"  # Token expired, revoked or tampered with
    ERROR = "error"  # Request mechanics failed; not a verdict on the token
