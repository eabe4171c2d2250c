"""
Shared utilities for the bearer-token authorization gate.

This package aggregates common building blocks consumed by the services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- errors: Canonical error types and responses
- base_service: FastAPI application scaffolding
- test_helpers: Token minting and JWKS fixtures for tests

Any cross-service logic should live here to avoid import cycles across
service packages. Do not import from service_* packages into shared/.
"""
