"""
Shared utilities for the Sathira Sweet access layer.

This package aggregates common building blocks consumed by the API server
and the client SDK:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- messages: Notification channel message variants
- base_service: FastAPI service scaffolding

Do not import from service_* packages into shared/.
"""
