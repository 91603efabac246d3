"""Logging module with structured logging and request tracking."""

from marketadmin.core.logging.middleware import RequestIdMiddleware, RequestLoggingMiddleware
from marketadmin.core.logging.configure import configure_logging


__all__ = [
    "RequestIdMiddleware",
    "RequestLoggingMiddleware",
    "configure_logging",
]
