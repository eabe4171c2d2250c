"""
Shared error handling for the bearer-token authorization gate.
"""

from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class AccessLayerException(Exception):
    """Base exception for gate services."""

    status_code = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class AuthenticationError(AccessLayerException):
    """Authentication-related errors."""

    status_code = 401

    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[Dict[str, Any]] = None,
        *,
        code: str = "AUTHENTICATION_ERROR",
    ):
        super().__init__(code, message, details)


class AuthorizationError(AccessLayerException):
    """Authorization-related errors."""

    status_code = 403

    def __init__(
        self,
        message: str = "Authorization failed",
        details: Optional[Dict[str, Any]] = None,
        *,
        code: str = "AUTHORIZATION_ERROR",
    ):
        super().__init__(code, message, details)


class ServiceError(AccessLayerException):
    """Service-related errors."""

    status_code = 503

    def __init__(
        self,
        message: str = "Service error",
        details: Optional[Dict[str, Any]] = None,
        *,
        code: str = "SERVICE_ERROR",
    ):
        super().__init__(code, message, details)


class ExternalServiceError(AccessLayerException):
    """External service errors."""

    status_code = 503

    def __init__(
        self,
        service: str,
        message: str = "External service error",
        details: Optional[Dict[str, Any]] = None,
        *,
        code: str = "EXTERNAL_SERVICE_ERROR",
    ):
        super().__init__(code, f"{service}: {message}", details)


# Token validation errors

class MalformedAuthorizationHeader(AuthenticationError):
    """Authorization header is missing or not of the form 'Bearer <token>'."""

    def __init__(self, message: str = "Authorization header must have a Bearer token",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="MALFORMED_AUTHORIZATION_HEADER")


class TokenParseError(AuthenticationError):
    """Token is not a well-formed compact JWT."""

    def __init__(self, message: str = "Token could not be parsed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="TOKEN_PARSE_ERROR")


class ClaimVerificationFailed(AuthenticationError):
    """Temporal claims (exp, nbf, iat) did not verify."""

    def __init__(self, message: str = "Token claims are not valid", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="CLAIM_VERIFICATION_FAILED")


class NoMatchingKey(AuthenticationError):
    """No key in the key set verified the token signature."""

    def __init__(self, key_errors: Optional[List[str]] = None):
        self.key_errors = list(key_errors or [])
        message = "\n".join(self.key_errors) or "Key set contained no keys"
        super().__init__(message, {"key_errors": self.key_errors}, code="NO_MATCHING_KEY")


class AudienceMismatch(AuthenticationError):
    """Token audience does not include the expected audience."""

    def __init__(self, expected: str, actual: Optional[List[str]] = None):
        super().__init__(
            "audience is not valid",
            {"expected": expected, "actual": list(actual or [])},
            code="AUDIENCE_MISMATCH",
        )


class IssuerMismatch(AuthenticationError):
    """Token issuer differs from the expected issuer."""

    def __init__(self, expected: str, actual: Optional[str] = None):
        super().__init__(
            "issuer is not valid",
            {"expected": expected, "actual": actual},
            code="ISSUER_MISMATCH",
        )


class KeySetFetchFailed(ExternalServiceError):
    """The JWKS endpoint could not be read."""

    def __init__(self, url: str, message: str = "Failed to fetch key set", details: Optional[Dict[str, Any]] = None):
        self.url = url
        super().__init__("jwks", message, {"url": url, **(details or {})}, code="KEY_SET_FETCH_FAILED")


class CachePersistenceError(ServiceError):
    """The validation cache could not be written."""

    def __init__(self, message: str = "Validation cache write failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="CACHE_PERSISTENCE_ERROR")


class NoScopesPresent(AuthorizationError):
    """Token carries no scope claim."""

    def __init__(self, message: str = "there are no scopes", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="NO_SCOPES_PRESENT")


class ClaimNotFound(AuthorizationError):
    """A required claim is absent from the token."""

    def __init__(self, claim: str):
        self.claim = claim
        super().__init__(f"claim '{claim}' not found", {"claim": claim}, code="CLAIM_NOT_FOUND")


class InvalidClaimType(AuthorizationError):
    """A claim is present but holds the wrong JSON type."""

    def __init__(self, claim: str, expected: str):
        self.claim = claim
        super().__init__(
            f"claim '{claim}' is not a {expected}",
            {"claim": claim, "expected": expected},
            code="INVALID_CLAIM_TYPE",
        )
