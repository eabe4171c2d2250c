"""
Token validation package.

Provides the pipeline used by the Auth Service to validate bearer JWTs
issued by the upstream identity provider:

- bearer: pulls the credential out of an ``Authorization: Bearer`` header.
- claims: parses tokens into a typed claim bag and checks exp/nbf/iat.
- projector: derives scopes, ``method:resource`` URL scopes and the
  audience-namespaced email claim.
- token_validator: composes signature matching, the validation cache and
  claims checks into a single entry point.

Only standard JOSE/JWT behaviors are assumed; the IdP is selected through
configuration.
"""

from .bearer import authorization_header, extract_bearer_token
from .claims import ClaimBag, ClaimsVerifier, VerifiedToken
from .projector import URLScope, email, has_scope, permits, scopes, url_scopes
from .token_validator import TokenValidator, TokenVerificationResponse

__all__ = [
    "ClaimBag",
    "ClaimsVerifier",
    "TokenValidator",
    "TokenVerificationResponse",
    "URLScope",
    "VerifiedToken",
    "authorization_header",
    "email",
    "extract_bearer_token",
    "has_scope",
    "permits",
    "scopes",
    "url_scopes",
]
