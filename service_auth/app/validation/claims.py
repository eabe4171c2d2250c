"""
Claim parsing and temporal verification for compact JWTs.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

from shared.errors import (
    ClaimNotFound,
    ClaimVerificationFailed,
    InvalidClaimType,
    TokenParseError,
)
from shared.logging import get_logger

Number = Union[int, float]


class ClaimBag(Mapping[str, Any]):
    """Read-only view over a token payload with typed accessors."""

    def __init__(self, claims: Mapping[str, Any]):
        self._claims: Dict[str, Any] = dict(claims)

    def __getitem__(self, name: str) -> Any:
        return self._claims[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._claims)

    def __len__(self) -> int:
        return len(self._claims)

    def __repr__(self) -> str:
        return f"ClaimBag({self._claims!r})"

    def _require(self, name: str) -> Any:
        if name not in self._claims:
            raise ClaimNotFound(name)
        return self._claims[name]

    def get_string(self, name: str) -> str:
        value = self._require(name)
        if not isinstance(value, str):
            raise InvalidClaimType(name, "string")
        return value

    def get_string_list(self, name: str) -> List[str]:
        """A string claim reads as a one-element list."""
        value = self._require(name)
        if isinstance(value, str):
            return [value]
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return list(value)
        raise InvalidClaimType(name, "string list")

    def get_number(self, name: str) -> Number:
        value = self._require(name)
        # bool is an int subclass but not a JSON number
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidClaimType(name, "number")
        return value

    def get_bool(self, name: str) -> bool:
        value = self._require(name)
        if not isinstance(value, bool):
            raise InvalidClaimType(name, "boolean")
        return value

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._claims)


@dataclass(frozen=True)
class VerifiedToken:
    """Token whose claims passed verification."""

    issuer: Optional[str]
    subject: Optional[str]
    audience: Tuple[str, ...]
    expiry: Optional[datetime]
    not_before: Optional[datetime]
    issued_at: Optional[datetime]
    claims: ClaimBag

    def has_audience(self, audience: str) -> bool:
        return audience in self.audience


def _timestamp(claims: Mapping[str, Any], name: str) -> Optional[datetime]:
    value = claims.get(name)
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise ClaimVerificationFailed(f"{name} out of range", {"claim": name}) from e


def _audience(claims: Mapping[str, Any]) -> Tuple[str, ...]:
    aud = claims.get("aud")
    if isinstance(aud, str):
        return (aud,)
    if isinstance(aud, list):
        return tuple(item for item in aud if isinstance(item, str))
    return ()


def _optional_string(claims: Mapping[str, Any], name: str) -> Optional[str]:
    value = claims.get(name)
    return value if isinstance(value, str) else None


class ClaimsVerifier:
    """Parses compact tokens and checks exp/nbf/iat against the clock.

    Signatures are not examined here; see ``SignatureMatcher``.
    """

    # Everything except the temporal checks is handled elsewhere.
    _options = {
        "verify_signature": False,
        "verify_aud": False,
        "verify_iss": False,
        "verify_sub": False,
        "verify_jti": False,
        "verify_at_hash": False,
        "verify_iat": True,
        "verify_exp": True,
        "verify_nbf": True,
    }

    def __init__(self, leeway: int = 0):
        self.leeway = leeway
        self.logger = get_logger("auth.claims")

    def parse(self, raw_token: str) -> ClaimBag:
        """Decode header and payload without checking any claim."""
        try:
            header = jwt.get_unverified_header(raw_token)
            claims = jwt.get_unverified_claims(raw_token)
        except JWTError as e:
            raise TokenParseError(str(e)) from e
        if "alg" not in header:
            raise TokenParseError("Token header missing 'alg'")
        return ClaimBag(claims)

    def parse_and_verify(self, raw_token: str) -> VerifiedToken:
        """Parse ``raw_token`` and verify its temporal claims.

        Raises:
            TokenParseError: the token is not a well-formed JWT.
            ClaimVerificationFailed: exp has passed, nbf is in the future, or
                a temporal claim is malformed.
        """
        claims = self.parse(raw_token)

        try:
            jwt.decode(raw_token, "", options={**self._options, "leeway": self.leeway})
        except ExpiredSignatureError as e:
            self.logger.info("Token expired", sub=claims.get("sub"))
            raise ClaimVerificationFailed(str(e), {"claim": "exp"}) from e
        except JWTClaimsError as e:
            self.logger.info("Token claims rejected", sub=claims.get("sub"), error=str(e))
            raise ClaimVerificationFailed(str(e)) from e
        except JWTError as e:
            raise TokenParseError(str(e)) from e
        except (TypeError, ValueError, OverflowError) as e:
            # null or non-scalar exp/nbf/iat reach int() inside python-jose
            self.logger.info("Token claims malformed", sub=claims.get("sub"), error=str(e))
            raise ClaimVerificationFailed(f"Malformed temporal claim: {e}") from e

        return VerifiedToken(
            issuer=_optional_string(claims, "iss"),
            subject=_optional_string(claims, "sub"),
            audience=_audience(claims),
            expiry=_timestamp(claims, "exp"),
            not_before=_timestamp(claims, "nbf"),
            issued_at=_timestamp(claims, "iat"),
            claims=claims,
        )
