"""
Token validation service for Auth service.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from shared.errors import AccessLayerException, AudienceMismatch, CachePersistenceError, IssuerMismatch
from shared.logging import get_logger
from ..cache.validation_cache import ValidationCache, token_fingerprint
from ..jwks.client import KeySetFetcher
from ..jwks.matcher import SignatureMatcher
from ..jwks.signature import SignatureVerifier
from .bearer import authorization_header, extract_bearer_token
from .claims import ClaimsVerifier, VerifiedToken


class TokenVerificationResponse(BaseModel):
    """Response model for token verification."""
    valid: bool
    subject: Optional[str] = None
    claims: Optional[Dict[str, Any]] = None
    scopes: List[str] = []
    error: Optional[str] = None
    code: Optional[str] = None


class TokenValidator:
    """Validates bearer tokens against a JWKS, caching signature checks.

    A cache hit skips the key-set fetch and the signature check but never
    the claims check: every call re-verifies exp/nbf on the raw token.
    """

    def __init__(
        self,
        fetcher: KeySetFetcher,
        verifier: SignatureVerifier,
        cache: ValidationCache,
        claims_verifier: Optional[ClaimsVerifier] = None,
        *,
        forget_on_failure: bool = True,
    ):
        self.matcher = SignatureMatcher(fetcher, verifier)
        self.cache = cache
        self.claims_verifier = claims_verifier or ClaimsVerifier()
        self.forget_on_failure = forget_on_failure
        self.logger = get_logger("auth.validator")

    async def validate(
        self, request: Any, jwks_url: str, audience: str, issuer: Optional[str] = None
    ) -> VerifiedToken:
        """Validate the bearer token carried by ``request``."""
        return await self.validate_header(authorization_header(request), jwks_url, audience, issuer)

    async def validate_header(
        self, header_value: Optional[str], jwks_url: str, audience: str, issuer: Optional[str] = None
    ) -> VerifiedToken:
        """Validate a raw ``Authorization`` header value."""
        raw_token = extract_bearer_token(header_value)
        return await self.process_token(raw_token, jwks_url, audience, issuer)

    async def process_token(
        self, raw_token: str, jwks_url: str, audience: str, issuer: Optional[str] = None
    ) -> VerifiedToken:
        """Run the cache / signature / claims pipeline on an extracted token.

        Raises:
            KeySetFetchFailed, NoMatchingKey: signature stage, cache miss only.
            AudienceMismatch, IssuerMismatch: cache miss only; token not cached.
            TokenParseError, ClaimVerificationFailed: claims stage, every call.
            CachePersistenceError: the verified token could not be cached.
        """
        fingerprint = token_fingerprint(raw_token)
        cached = await self.cache.contains(raw_token)

        if not cached:
            await self.matcher.verify(raw_token, jwks_url)
            token = self.claims_verifier.parse_and_verify(raw_token)
            self._check_audience(token, audience)
            if issuer:
                self._check_issuer(token, issuer)
            await self.cache.remember(raw_token)
            self.logger.info("Token signature verified", token=fingerprint, sub=token.subject)
        else:
            self.logger.debug("Validation cache hit", token=fingerprint)

        try:
            return self.claims_verifier.parse_and_verify(raw_token)
        except AccessLayerException:
            if cached and self.forget_on_failure:
                await self._forget(raw_token)
            raise

    def _check_audience(self, token: VerifiedToken, audience: str) -> None:
        if not token.has_audience(audience):
            self.logger.warning("Token audience rejected", expected=audience, actual=list(token.audience))
            raise AudienceMismatch(audience, list(token.audience))

    def _check_issuer(self, token: VerifiedToken, issuer: str) -> None:
        if token.issuer != issuer:
            self.logger.warning("Token issuer rejected", expected=issuer, actual=token.issuer)
            raise IssuerMismatch(issuer, token.issuer)

    async def _forget(self, raw_token: str) -> None:
        # The claims error is what the caller must see, not the eviction failure.
        try:
            await self.cache.forget(raw_token)
        except CachePersistenceError as e:
            self.logger.error("Failed to evict rejected token", token=token_fingerprint(raw_token), error=str(e))
