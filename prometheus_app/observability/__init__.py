"""Observability helpers: structlog JSON logging, Prometheus instruments and request middleware."""
