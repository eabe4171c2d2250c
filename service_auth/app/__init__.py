"""
Auth Service package for the bearer-token authorization gate.

This package exposes the FastAPI application that decides whether a caller
presented a valid, unexpired, correctly-scoped bearer token:

- app.main: Application entrypoint that wires routes and lifecycle.
- app.validation: Bearer extraction, claims parsing, scope projection and
  the validation pipeline.
- app.jwks: JWKS fetching and per-key signature matching.
- app.cache: Validation cache over in-memory or Redis key-value stores.
- app.dependencies: FastAPI dependencies for protecting other routes.

Design notes:
- Keep the package import side-effects minimal; module import must not
  perform network calls. All IO should happen in route handlers or
  explicit startup hooks.
- Use the shared/ utilities for logging, config, and errors.
- The validation cache only saves signature work; claims are re-checked
  on every request.
"""
