"""
Shared utilities for the state permission layer.

This package aggregates common building blocks consumed by the
authorization engine:

- config: Engine configuration via pydantic-settings
- logging: Structured logging with transition correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses

Do not import from service_* packages into shared/.
"""
