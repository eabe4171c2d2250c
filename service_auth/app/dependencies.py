"""
FastAPI dependencies guarding routes with bearer-token validation.
"""

from typing import Callable, Awaitable

from fastapi import Depends, Request

from shared.errors import AuthorizationError
from .validation import VerifiedToken, has_scope, permits


async def require_verified_token(request: Request) -> VerifiedToken:
    """Validate the caller's bearer token; errors reach the app's exception handler."""
    service = request.app.state.auth_service
    token = await service.authenticate(request)
    request.state.verified_token = token
    return token


def require_scope(scope: str) -> Callable[..., Awaitable[VerifiedToken]]:
    """Dependency factory requiring a coarse scope such as ``read:reports``."""

    async def dependency(token: VerifiedToken = Depends(require_verified_token)) -> VerifiedToken:
        if not has_scope(token, scope):
            raise AuthorizationError(f"Missing required scope '{scope}'", {"scope": scope})
        return token

    return dependency


def require_url_scope(resource: str) -> Callable[..., Awaitable[VerifiedToken]]:
    """Dependency factory requiring a ``<method>:<resource>`` scope for the request method."""

    async def dependency(
        request: Request, token: VerifiedToken = Depends(require_verified_token)
    ) -> VerifiedToken:
        if not permits(token, request.method, resource):
            raise AuthorizationError(
                f"Missing permission {request.method.lower()}:{resource}",
                {"method": request.method.lower(), "resource": resource},
            )
        return token

    return dependency
