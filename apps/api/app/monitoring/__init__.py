"""Monitoring utilities for Prometheus instrumentation."""

from .middleware import MetricsMiddleware, record_storage_operation, reset_metrics
from .router import router

__all__ = ["MetricsMiddleware", "record_storage_operation", "reset_metrics", "router"]
