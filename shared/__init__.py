"""
Shared utilities for the Perla Metro gateway.

This package aggregates common building blocks consumed by the gateway
service and the mock backends:

- config: Service configuration via pydantic-settings
- logging: Structured logging with trace and request correlation
- metrics: Prometheus metrics helpers
- tracing: OpenTelemetry tracing config
- envelope: Uniform {success, message, data} response
- errors: Gateway error taxonomy
- base_service: FastAPI service skeleton (health, metrics, error handlers)

Do not import from service packages into shared/.
"""
