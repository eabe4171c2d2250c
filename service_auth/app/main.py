"""
Auth service for the bearer-token authorization gate.
"""

from typing import Optional

from fastapi import Depends, Request

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import AccessLayerException, NoScopesPresent
from shared.logging import set_subject
from .cache import InMemoryKeyValueStore, KeyValueStore, RedisKeyValueStore, ValidationCache
from .dependencies import require_verified_token
from .jwks import JoseSignatureVerifier, JWKSClient, KeySetFetcher, SignatureVerifier
from .validation import (
    ClaimsVerifier,
    TokenValidator,
    TokenVerificationResponse,
    VerifiedToken,
    email,
    scopes,
    url_scopes,
)


class AuthService(BaseService):
    """Auth service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        store: Optional[KeyValueStore] = None,
        fetcher: Optional[KeySetFetcher] = None,
        verifier: Optional[SignatureVerifier] = None,
    ):
        super().__init__("auth", 8010, config or get_config("auth", 8010))

        if store is None:
            if self.config.redis_url:
                store = RedisKeyValueStore(self.config.redis_url)
            else:
                store = InMemoryKeyValueStore()
        self.store = store
        self.fetcher = fetcher or JWKSClient(timeout=self.config.jwks_timeout)
        self.verifier = verifier or JoseSignatureVerifier(self.config.allowed_algorithms)

        self.token_validator = TokenValidator(
            self.fetcher,
            self.verifier,
            ValidationCache(self.store, key_prefix=self.config.token_cache_prefix),
            ClaimsVerifier(leeway=self.config.claims_leeway),
            forget_on_failure=self.config.forget_on_failure,
        )

        self.app.state.auth_service = self
        self._setup_auth_routes()

    async def startup(self) -> None:
        if isinstance(self.store, RedisKeyValueStore):
            await self.store.start()
        self.logger.info(
            "Auth service started",
            jwks_url=self.config.jwks_url,
            audience=self.config.audience,
            cache_backend=type(self.store).__name__
        )

    async def shutdown(self) -> None:
        if isinstance(self.store, RedisKeyValueStore):
            await self.store.stop()
        if isinstance(self.fetcher, JWKSClient):
            await self.fetcher.close()

    async def authenticate(self, request: Request) -> VerifiedToken:
        """Validate the request's bearer token against the configured IdP."""
        token = await self.token_validator.validate(
            request,
            self.config.jwks_url,
            self.config.audience,
            self.config.issuer
        )
        set_subject(token.subject)
        return token

    def _setup_auth_routes(self):
        """Set up auth-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "auth",
                "message": "Bearer-token authorization gate - Auth Service",
                "version": "1.0.0"
            }

        @self.app.post("/auth/verify", response_model=TokenVerificationResponse)
        async def verify_token(request: Request):
            """Verify the bearer token presented in this request's Authorization header."""
            try:
                token = await self.authenticate(request)
            except AccessLayerException as e:
                self.logger.warning("Token verification failed", code=e.code, error=e.message)
                return TokenVerificationResponse(valid=False, error=e.message, code=e.code)

            try:
                granted = scopes(token)
            except NoScopesPresent:
                granted = []

            return TokenVerificationResponse(
                valid=True,
                subject=token.subject,
                claims=token.claims.to_dict(),
                scopes=granted
            )

        @self.app.get("/auth/scopes")
        async def get_scopes(token: VerifiedToken = Depends(require_verified_token)):
            """Coarse scopes and method:resource permissions of the caller."""
            return {
                "subject": token.subject,
                "scopes": scopes(token),
                "url_scopes": [
                    {"method": scope.method, "resource": scope.resource}
                    for scope in url_scopes(token)
                ]
            }

        @self.app.get("/auth/email")
        async def get_email(token: VerifiedToken = Depends(require_verified_token)):
            """Email address namespaced under the configured audience."""
            return {
                "subject": token.subject,
                "email": email(token, self.config.audience)
            }

    async def _check_dependencies(self):
        """Check auth dependencies."""
        dependencies = {}

        if isinstance(self.store, RedisKeyValueStore):
            dependencies["redis"] = "ok" if await self.store.health_check() else "error"
        else:
            dependencies["cache"] = "ok"

        return dependencies


def create_app(config: Optional[ServiceConfig] = None, **components):
    """Create FastAPI application."""
    service = AuthService(config, **components)
    return service.app


if __name__ == "__main__":
    service = AuthService()
    service.run()
