"""
JWKS package.

Contains the pieces that check a token signature against the signing keys
published by the identity provider:

- client: fetches the JWKS document over HTTP (one fetch per call).
- signature: verifies a raw token against a single JWK with python-jose.
- matcher: tries every key of a fetched set and reports whether any matched.
"""

from .client import JWKSClient, KeySetFetcher
from .matcher import KeyMatchResult, SignatureMatcher
from .signature import JoseSignatureVerifier, SignatureVerifier

__all__ = [
    "JWKSClient",
    "JoseSignatureVerifier",
    "KeyMatchResult",
    "KeySetFetcher",
    "SignatureMatcher",
    "SignatureVerifier",
]
