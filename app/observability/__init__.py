"""Observability for the mock API service.

Prometheus metrics via prometheus_client, request IDs + structlog contextvars,
and batched log shipping to Loki.
"""
