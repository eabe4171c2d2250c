"""
Bearer credential extraction from Authorization headers.
"""

from typing import Any, Mapping, Optional

from shared.errors import MalformedAuthorizationHeader

BEARER_SCHEME = "Bearer"


def extract_bearer_token(header_value: Optional[str]) -> str:
    """Return the credential of a ``Bearer <token>`` header value.

    Only the first two space-separated segments are inspected; anything after
    the credential is ignored.
    """
    parts = (header_value or "").split(" ")
    if len(parts) < 2 or parts[0] != BEARER_SCHEME:
        raise MalformedAuthorizationHeader()
    if not parts[1]:
        raise MalformedAuthorizationHeader("Authorization header contained empty bearer token")
    return parts[1]


def authorization_header(request: Any) -> str:
    """Read the raw Authorization header from a request or header mapping.

    Works with anything exposing a case-insensitive ``headers`` mapping
    (Starlette/FastAPI and httpx requests) as well as plain dicts.
    """
    headers = getattr(request, "headers", request)
    if headers is None:
        return ""

    value = headers.get("Authorization")
    if value is None and isinstance(headers, Mapping):
        for name, candidate in headers.items():
            if isinstance(name, str) and name.lower() == "authorization":
                value = candidate
                break

    if isinstance(value, bytes):
        value = value.decode("latin-1")
    return value or ""
