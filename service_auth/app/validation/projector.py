"""
Authorization facts projected from verified token claims.
"""

from dataclasses import dataclass
from typing import List

from shared.errors import InvalidClaimType, NoScopesPresent
from .claims import VerifiedToken

URL_SCOPE_SEPARATOR = ":"
EMAIL_CLAIM_SUFFIX = "email"


@dataclass(frozen=True)
class URLScope:
    """Permission to call ``method`` on ``resource``, from a ``method:resource`` scope."""

    method: str
    resource: str


def scopes(token: VerifiedToken) -> List[str]:
    """Return the space-delimited ``scope`` claim as a list, in token order."""
    raw = token.claims.get("scope")
    if raw is None:
        raise NoScopesPresent()
    if not isinstance(raw, str):
        raise InvalidClaimType("scope", "string")

    result = [scope for scope in raw.split(" ") if scope]
    if not result:
        raise NoScopesPresent()
    return result


def url_scopes(token: VerifiedToken) -> List[URLScope]:
    """Return the ``method:resource`` scopes; plain scopes like ``openid`` are skipped."""
    result = []
    for scope in scopes(token):
        if URL_SCOPE_SEPARATOR not in scope:
            continue
        method, _, resource = scope.partition(URL_SCOPE_SEPARATOR)
        result.append(URLScope(method=method, resource=resource))
    return result


def email(token: VerifiedToken, audience: str) -> str:
    """Return the namespaced email claim, e.g. ``https://api.example.com/email``."""
    return token.claims.get_string(audience + EMAIL_CLAIM_SUFFIX)


def has_scope(token: VerifiedToken, scope: str) -> bool:
    try:
        return scope in scopes(token)
    except NoScopesPresent:
        return False


def permits(token: VerifiedToken, method: str, resource: str) -> bool:
    """True when a URL scope grants ``method`` (any case) on exactly ``resource``."""
    try:
        granted = url_scopes(token)
    except NoScopesPresent:
        return False
    method = method.lower()
    return any(s.method.lower() == method and s.resource == resource for s in granted)
