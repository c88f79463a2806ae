"""
Shared utilities for the Product BFF.

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI service skeleton (health, metrics, error handlers)
- test_helpers: Key pairs, token minting and fake backends for tests

Do not import from service packages into shared/.
"""
