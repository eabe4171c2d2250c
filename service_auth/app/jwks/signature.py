"""
Signature verification of raw JWTs against a single JWK.
"""

from typing import Any, Dict, Iterable, Optional, Protocol

from jose import jws
from jose.exceptions import JWSError


class SignatureVerifier(Protocol):
    """Verifies a compact token against one key, raising on mismatch."""

    def verify(self, raw_token: str, key: Dict[str, Any]) -> None:
        ...


class JoseSignatureVerifier:
    """``python-jose`` backed verifier.

    The algorithm is pinned to the key's ``alg`` member when the key declares
    one; otherwise the token header's algorithm must be in
    ``allowed_algorithms``.
    """

    def __init__(self, allowed_algorithms: Optional[Iterable[str]] = None):
        self.allowed_algorithms = list(allowed_algorithms or ["RS256"])

    def verify(self, raw_token: str, key: Dict[str, Any]) -> None:
        alg = key.get("alg")
        algorithms = [alg] if alg else self.allowed_algorithms
        if key.get("use") not in (None, "sig"):
            raise JWSError(f"Key {key.get('kid')} is not a signing key")
        jws.verify(raw_token, key, algorithms)
